# tests/core/test_configurator.py

from typing import ClassVar, List

import pytest
from pydantic import BaseModel, Field, RootModel, ValidationError

from core.config_monitor import ConfigMonitor
from core.configurator import Configurator, MultiConfigurator, SettingsLocation, select_primary


class SampleConfig(Configurator, BaseModel):
    required: ClassVar[bool] = True

    source: str = Field(default='default')
    enable: bool = Field(default=True)
    value: int = Field(default=1)

    def format(self) -> str:
        return f'source={self.source} value={self.value}'

    def location(self):
        return SettingsLocation(file_path='sample.yaml', data_id='sample.yaml')

    def execute(self) -> None:
        pass


class MultiSampleConfig(MultiConfigurator, RootModel[List[SampleConfig]]):
    root: List[SampleConfig] = Field(default_factory=list)

    def execute(self) -> None:
        pass


class TestConfigurator:

    def test_declared_properties(self):
        assert SampleConfig.required is True
        assert SampleConfig.run_without_settings is False
        assert MultiSampleConfig.required is False

    def test_abstract_methods_are_enforced(self):
        class Incomplete(Configurator):
            def format(self):
                return ''

        with pytest.raises(TypeError):
            Incomplete()

    def test_load_updates_in_place(self):
        config = SampleConfig()
        same = config
        config.load({'source': 'reports', 'value': 7})
        assert same.source == 'reports'
        assert same.value == 7
        assert same.enable is True

    def test_load_invalid_data_leaves_instance_untouched(self):
        config = SampleConfig(value=3)
        with pytest.raises(ValidationError):
            config.load({'value': 'not-a-number'})
        assert config.value == 3

    def test_load_partial_data_keeps_current_values(self):
        config = SampleConfig(source='reports', value=3)
        config.load({'value': 7})
        assert config.source == 'reports'
        assert config.value == 7

    def test_load_requires_pydantic_model_or_override(self):
        class Plain(Configurator):
            def format(self):
                return ''

            def execute(self):
                pass

        with pytest.raises(TypeError):
            Plain().load({})


class TestMultiConfigurator:

    def test_wraps_entries(self):
        multi = MultiSampleConfig([SampleConfig(source='a'), SampleConfig(source='b')])
        assert len(multi) == 2
        assert [c.source for c in multi] == ['a', 'b']
        assert multi[1].source == 'b'
        assert multi.sources() == ['a', 'b']
        assert multi.format() == '[{source=a value=1}, {source=b value=1}]'

    def test_load_list(self):
        multi = MultiSampleConfig()
        multi.load([{'source': 'x'}, {'source': 'default', 'value': 5}])
        assert multi.sources() == ['x', 'default']
        assert multi.primary.value == 5

    def test_primary_prefers_default_source(self):
        multi = MultiSampleConfig([SampleConfig(source='a'), SampleConfig(source='default'), SampleConfig(source='c')])
        assert multi.primary.source == 'default'

    def test_primary_falls_back_to_first_enabled(self):
        multi = MultiSampleConfig([SampleConfig(source='a', enable=False), SampleConfig(source='b')])
        assert multi.primary.source == 'b'

    def test_primary_of_empty_collection(self):
        assert MultiSampleConfig().primary is None


def test_select_primary_without_entries():
    assert select_primary([]) is None


class TestConfigMonitor:

    def test_first_set_is_not_a_change(self):
        monitor = ConfigMonitor()
        data = monitor.set('app', 'db.yaml', 'a: 1')
        assert data.changed is False
        assert data.update_time > 0

    def test_change_notification_marks_changed(self):
        monitor = ConfigMonitor()
        monitor.set('app', 'db.yaml', 'a: 1')
        monitor.on_change('app', 'db.yaml', 'a: 2')
        data = monitor.get('app', 'db.yaml')
        assert data.content == 'a: 2'
        assert data.changed is True

        monitor.mark_read('app', 'db.yaml')
        assert monitor.get('app', 'db.yaml').changed is False

    def test_same_content_is_not_a_change(self):
        monitor = ConfigMonitor()
        monitor.set('app', 'db.yaml', 'a: 1')
        monitor.on_change('app', 'db.yaml', 'a: 1')
        assert monitor.get('app', 'db.yaml').changed is False

    def test_clear(self):
        monitor = ConfigMonitor()
        monitor.set('app', 'db.yaml', 'a: 1')
        monitor.clear()
        assert monitor.get('app', 'db.yaml') is None
