"""
Settings codecs selected by file suffix.

``.yaml`` / ``.yml`` (default), ``.json`` and ``.toml`` are understood when
decoding; encoding covers YAML and JSON. Decoded trees go through
environment interpolation before they reach a settings model.
"""
from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Union

import yaml
from pydantic import BaseModel, RootModel, ValidationError

from configs.config_utils import expand_tree

__all__ = ['CodecError', 'codec_for', 'decode', 'encode', 'read_file', 'write_file', 'unmarshal_into', 'update_model']
logger = logging.getLogger(__name__)

YAML = 'yaml'
JSON = 'json'
TOML = 'toml'

_SUFFIXES = {
    '.yaml': YAML,
    '.yml': YAML,
    '.json': JSON,
    '.json5': JSON,
    '.toml': TOML,
}


class CodecError(ValueError):
    """Raised when settings content cannot be decoded or encoded."""


def codec_for(name: Union[str, Path]) -> str:
    return _SUFFIXES.get(Path(str(name)).suffix.lower(), YAML)


def decode(content: Union[str, bytes], name: Union[str, Path]) -> Any:
    if isinstance(content, bytes):
        content = content.decode('utf-8')
    codec = codec_for(name)
    try:
        if codec == JSON:
            data = json.loads(content) if content.strip() else None
        elif codec == TOML:
            data = tomllib.loads(content)
        else:
            data = yaml.safe_load(content)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise CodecError(f'Invalid {codec} content for {name}: {e}') from e
    return expand_tree(data)


def encode(data: Any, name: Union[str, Path]) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode='json', by_alias=True)
    codec = codec_for(name)
    if codec == JSON:
        return json.dumps(data, indent=2, ensure_ascii=False)
    if codec == TOML:
        raise CodecError(f'Writing toml is not supported: {name}')
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def read_file(path: Union[str, Path]) -> Any:
    path = Path(path)
    text = path.read_text(encoding='utf-8')
    return decode(text, path)


def write_file(path: Union[str, Path], data: Any) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode(data, path), encoding='utf-8')
    logger.debug('Wrote %s', path)


def update_model(target: BaseModel, data: Any) -> None:
    """
    Validate ``data`` over the current values of ``target`` and apply it in place.

    Fields the document omits keep their current values. Root models (list
    settings) are replaced as a whole. Raises ``ValidationError`` and leaves
    ``target`` untouched when the merged settings are invalid.
    """
    model = type(target)
    if isinstance(target, RootModel) or not isinstance(data, Mapping):
        loaded = model.model_validate(data)
    else:
        merged = target.model_dump(by_alias=True)
        for name, field in model.model_fields.items():
            if name in data or (field.alias and field.alias in data):
                merged.pop(field.alias or name, None)
        merged.update(data)
        loaded = model.model_validate(merged)
    for field_name in model.model_fields:
        setattr(target, field_name, getattr(loaded, field_name))


def unmarshal_into(target: Any, data: Any) -> None:
    """Decode ``data`` into ``target`` in place (configurator, pydantic model or mutable mapping)."""
    if data is None:
        raise CodecError('No settings content')
    load = getattr(target, 'load', None)
    try:
        if callable(load):
            load(data)
        elif isinstance(target, BaseModel):
            update_model(target, data)
        elif isinstance(target, MutableMapping):
            if not isinstance(data, dict):
                raise CodecError(f'Expected a mapping, got {type(data).__name__}')
            target.update(data)
        else:
            raise CodecError(f'Cannot decode settings into {type(target).__name__}')
    except ValidationError as e:
        raise CodecError(f'Settings do not match {type(target).__name__}: {e}') from e
