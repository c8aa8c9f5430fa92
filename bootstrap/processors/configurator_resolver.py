"""
Configuration resolution for configurators.

Settings precedence is remote config service, then the local config
directory, then compiled defaults. A configurator runs when settings were
found or when the caller (or the class) says it must run without them.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Type

from bootstrap.exceptions import ConfiguratorExecutionError, SettingsNotFoundError
from configs.codec import CodecError, decode, read_file, unmarshal_into
from core.configurator import Configurator, MultiConfigurator, SettingsLocation

if TYPE_CHECKING:
    from bootstrap.bootstrap_context import BootstrapContext, Switch

logger = logging.getLogger(__name__)

__all__ = ['ConfiguratorResolver', 'SubsystemFamily']


@dataclass(frozen=True)
class SubsystemFamily:
    """A subsystem with single and multi-source configurators sharing one ``AppConfig`` slot."""
    slot: str
    single: Type[Configurator]
    multi: Type[MultiConfigurator]
    multi_switch: 'Switch'


class ConfiguratorResolver:

    def __init__(self, context: 'BootstrapContext'):
        self.context = context

    def resolve(self, configurator: Configurator, *, must_run: Optional[bool] = None,
                required: Optional[bool] = None) -> bool:
        """
        Load settings into ``configurator`` and execute it when appropriate.

        Returns True when ``execute()`` ran and succeeded. Raises
        :class:`SettingsNotFoundError` or :class:`ConfiguratorExecutionError`
        only for required configurators.
        """
        name = type(configurator).__name__
        must_run = configurator.run_without_settings if must_run is None else must_run
        required = configurator.required if required is None else required

        config_from = f'default@{name}'
        location = configurator.location()
        if location is not None:
            loaded_from = self._load_settings(configurator, location)
            if loaded_from is not None:
                config_from, must_run = loaded_from, True

        if not must_run:
            if required:
                raise SettingsNotFoundError(f'No settings found for required configurator {name}',
                                            component_id=name)
            logger.info(f'{name} not executed, no settings found')
            return False

        if self.context.debug:
            logger.info(f'{name} settings: {configurator.format()}')
        try:
            configurator.execute()
        except Exception as e:
            if required:
                raise ConfiguratorExecutionError(f'Configurator {name} execute failed', component_id=name,
                                                 config_from=config_from, original_error=e) from e
            logger.error(f'Configurator {name} execute failed [config_from={config_from}]: {e}', exc_info=True)
            return False
        logger.info(f'Configurator {name} execute successfully [config_from={config_from}]')
        return True

    def resolve_family(self, family: SubsystemFamily) -> MultiConfigurator:
        """Resolve a subsystem family; the slot always ends up holding a multi-source collection."""
        app_config = self.context.config
        current = getattr(app_config, family.slot, None)
        if current is not None:
            # inline settings from the application config file
            self.resolve(current, must_run=True)
            return current

        if self.context.enabled(family.multi_switch):
            multi = family.multi()
            self.resolve(multi, must_run=True, required=True)
        else:
            single = family.single()
            self.resolve(single)
            multi = family.multi([single])
        setattr(app_config, family.slot, multi)
        return multi

    def _load_settings(self, configurator: Configurator, location: SettingsLocation) -> Optional[str]:
        """Returns the source tag of the settings decoded into ``configurator``, or None."""
        if self.context.remote_enabled:
            group = location.group or self.context.config.server.name
            loaded_from = self._load_remote(configurator, group, location)
            if loaded_from is not None:
                return loaded_from

        path = self.context.get_config_path(location.file_path)
        if not os.path.exists(path):
            logger.debug(f'Local settings not found: {path}')
            return None
        try:
            unmarshal_into(configurator, read_file(path))
        except (OSError, CodecError) as e:
            logger.warning(f'Failed to load local settings {path}: {e}')
            return None
        return f'local@{path}'

    def _load_remote(self, configurator: Configurator, group: str, location: SettingsLocation) -> Optional[str]:
        remote = self.context.remote_config
        try:
            content = remote.get_config(group, location.data_id)
            unmarshal_into(configurator, decode(content, location.data_id))
        except Exception as e:
            logger.warning(f'Failed to load remote settings group={group} dataId={location.data_id}, '
                           f'falling back to local: {e}')
            return None

        if location.listen:
            monitor = self.context.monitor
            monitor.set(group, location.data_id, content)
            try:
                remote.listen_config(group, location.data_id, content, monitor.on_change)
            except Exception as e:
                logger.warning(f'Failed to listen remote settings group={group} dataId={location.data_id}: {e}')
        return f'nacos@{group}@{location.data_id}'
