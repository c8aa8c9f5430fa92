# tests/configs/test_codec.py

import pytest
from pydantic import BaseModel, Field

from configs.codec import CodecError, codec_for, decode, encode, read_file, unmarshal_into, write_file
from configs.config_utils import expand_tree, interpolate_env


class Settings(BaseModel):
    host: str = Field(default='localhost')
    port: int = Field(default=80)


class TestCodecSelection:

    @pytest.mark.parametrize('name, codec', [
        ('config.yaml', 'yaml'),
        ('config.YML', 'yaml'),
        ('config.json', 'json'),
        ('config.toml', 'toml'),
        ('config', 'yaml'),
        ('data-id-without-suffix', 'yaml'),
    ])
    def test_codec_for(self, name, codec):
        assert codec_for(name) == codec


class TestDecode:

    def test_yaml(self):
        assert decode('host: db\nport: 5432\n', 'database.yaml') == {'host': 'db', 'port': 5432}

    def test_json(self):
        assert decode('{"host": "db", "port": 5432}', 'database.json') == {'host': 'db', 'port': 5432}

    def test_toml(self):
        assert decode('host = "db"\nport = 5432\n', 'database.toml') == {'host': 'db', 'port': 5432}

    def test_bytes(self):
        assert decode(b'a: 1', 'x.yaml') == {'a': 1}

    def test_invalid_content(self):
        with pytest.raises(CodecError):
            decode('{not json', 'x.json')
        with pytest.raises(CodecError):
            decode('a: [1, 2', 'x.yaml')

    def test_environment_interpolation(self, monkeypatch):
        monkeypatch.setenv('DB_HOST', 'db.internal')
        monkeypatch.delenv('DB_PORT', raising=False)
        data = decode('host: ${DB_HOST}\nport: ${DB_PORT:-3306}\nlist: ["$DB_HOST"]\n', 'x.yaml')
        assert data == {'host': 'db.internal', 'port': '3306', 'list': ['db.internal']}


class TestEnvHelpers:

    def test_interpolate_default_when_unset(self, monkeypatch):
        monkeypatch.delenv('MISSING_VAR', raising=False)
        assert interpolate_env('${MISSING_VAR:-fallback}') == 'fallback'

    def test_non_strings_pass_through(self):
        assert expand_tree({'a': 1, 'b': [True, None]}) == {'a': 1, 'b': [True, None]}


class TestEncodeAndFiles:

    def test_encode_model_by_alias(self):
        class Aliased(BaseModel):
            file_name: str = Field(default='app.log', alias='fileName')

        assert encode(Aliased(), 'log.yaml') == 'fileName: app.log\n'

    def test_encode_toml_not_supported(self):
        with pytest.raises(CodecError):
            encode({'a': 1}, 'x.toml')

    def test_write_creates_parent_directories(self, tmp_path):
        path = tmp_path / 'nested' / 'conf' / 'settings.json'
        write_file(path, Settings(host='h'))
        assert read_file(path) == {'host': 'h', 'port': 80}


class TestUnmarshal:

    def test_into_model_in_place(self):
        settings = Settings()
        unmarshal_into(settings, {'host': 'db'})
        assert settings.host == 'db'
        assert settings.port == 80

    def test_into_model_keeps_preset_fields(self):
        settings = Settings(host='cache.internal')
        unmarshal_into(settings, {'port': 6379})
        assert (settings.host, settings.port) == ('cache.internal', 6379)

    def test_into_mapping(self):
        target = {'keep': True}
        unmarshal_into(target, {'added': 1})
        assert target == {'keep': True, 'added': 1}

    def test_validation_error_becomes_codec_error(self):
        with pytest.raises(CodecError):
            unmarshal_into(Settings(), {'port': 'not-a-port'})

    def test_empty_content(self):
        with pytest.raises(CodecError):
            unmarshal_into(Settings(), None)

    def test_unsupported_target(self):
        with pytest.raises(CodecError):
            unmarshal_into(object(), {'a': 1})
