"""Build run configurations from presets and ``--key=value`` arguments.

Arguments are applied on top of the dataclass defaults in two layers:

1. At most one positional argument names a preset module (dotted path or
   ``.py`` path). It is imported, and its public bool/int/float/str values
   replace the defaults of matching fields.
2. ``--key=value`` overrides are parsed with ``ast.literal_eval`` (bare
   words stay strings) and must keep the type of the field's current value;
   an int is accepted for a float field.

The dataclass validates the result in its own ``__post_init__``.

Example:
    from hidden_order.config.loader import load_config
    from hidden_order.config.run import OrderSelectionRunConfig

    config = load_config(OrderSelectionRunConfig, ["--strategy=golden_section", "--maximum_order=16"])
"""

import importlib
import sys
from ast import literal_eval
from dataclasses import MISSING, fields
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from loguru import logger

from hidden_order.errors import ConfigurationError, HiddenOrderError, ValidationError

T = TypeVar("T")

PRIMITIVE_TYPES = (bool, int, float, str)


def load_config(
    config_class: Type[T],
    args: Optional[List[str]] = None,
    show_help: bool = True,
) -> T:
    """Instantiate ``config_class`` from defaults, a preset and overrides.

    Args:
        config_class: Dataclass to build
        args: Arguments to apply (default: sys.argv[1:])
        show_help: Print the available fields and exit on ``--help``

    Raises:
        ValidationError: For malformed arguments, unknown keys, type
            mismatches or a preset module that cannot be imported
        ConfigurationError: If the dataclass cannot be built from the values
    """
    if args is None:
        args = sys.argv[1:]

    if show_help and "--help" in args:
        _print_help(config_class)
        sys.exit(0)

    preset_name, overrides = _split_arguments(args)
    values = _defaults(config_class)

    if preset_name:
        preset = _load_config_module(preset_name)
        logger.info(f"Loaded {len(preset)} settings from {preset_name}")
        ignored = sorted(key for key in preset if key not in values)
        if ignored:
            logger.warning(f"Ignoring preset keys that are not fields: {', '.join(ignored)}")
        values.update((key, value) for key, value in preset.items() if key in values)

    for key, text in overrides:
        if key not in values:
            raise ValidationError(
                problem=f"Unknown config key: {key}",
                cause=f"{config_class.__name__} has no field '{key}'",
                recovery=f"Use one of: {', '.join(sorted(values))}",
            )
        values[key] = _parse_override(key, text, values[key])
        logger.debug(f"Override {key} = {values[key]!r}")

    try:
        return config_class(**values)
    except HiddenOrderError:
        raise
    except TypeError as e:
        raise ConfigurationError(
            problem=f"Failed to create {config_class.__name__}",
            cause=str(e),
            recovery="Check the field names and value types of the preset",
        )


def _split_arguments(args: List[str]) -> Tuple[Optional[str], List[Tuple[str, str]]]:
    """Separate the preset module name from the ``--key=value`` overrides."""
    preset_name = None
    overrides = []
    for arg in args:
        if "=" not in arg:
            if arg.startswith("--"):
                raise ValidationError(
                    problem="Invalid config module argument format",
                    cause=f"Config module argument '{arg}' cannot start with '--'",
                    recovery="Pass a preset as 'presets.wide_search' and settings as --key=value",
                )
            preset_name = arg
            continue
        if not arg.startswith("--"):
            raise ValidationError(
                problem="Invalid override argument format",
                cause=f"Override argument '{arg}' must start with '--'",
                recovery="Use --key=value, e.g. --maximum_order=12",
            )
        key, text = arg[2:].split("=", 1)
        overrides.append((key, text))
    return preset_name, overrides


def _parse_override(key: str, text: str, current: Any) -> Any:
    """Parse ``text`` as a value of the same type as ``current``."""
    try:
        value = literal_eval(text)
    except (SyntaxError, ValueError):
        value = text

    expected = type(current)
    if expected is float and type(value) is int:
        value = float(value)

    if type(value) is not expected:
        raise ValidationError(
            problem="Configuration type mismatch",
            cause=f"Cannot override '{key}': expected {expected.__name__}, got {type(value).__name__}",
            recovery=f"Provide a {expected.__name__} (current value: {current!r})",
        )
    return value


def _defaults(config_class: Type) -> Dict[str, Any]:
    values = {}
    for f in fields(config_class):
        if not f.init:
            continue
        if f.default is not MISSING:
            values[f.name] = f.default
        elif f.default_factory is not MISSING:
            values[f.name] = f.default_factory()
    return values


def _load_config_module(module_name: str) -> Dict[str, Any]:
    """Import a preset module and return its public primitive values.

    Raises:
        ValidationError: If the module cannot be imported
    """
    if module_name.endswith(".py"):
        module_name = module_name[:-3].replace("/", ".")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValidationError(
            problem=f"Cannot load config module: {module_name}",
            cause=str(e),
            recovery="Pass an importable preset, e.g. 'presets.wide_search' or 'presets/wide_search.py'",
        )

    return {
        name: value
        for name, value in vars(module).items()
        if not name.startswith("_") and isinstance(value, PRIMITIVE_TYPES)
    }


def _print_help(config_class: Type) -> None:
    print(f"\nSettings of {config_class.__name__}\n")
    print("Usage:")
    print("    python -m hidden_order.cli.select_order [preset_module] [--key=value ...]\n")
    for f in fields(config_class):
        type_name = getattr(f.type, "__name__", str(f.type))
        default = f" (default: {f.default!r})" if f.default is not MISSING else ""
        print(f"    --{f.name}=<{type_name}>{default}")
    print("\nBooleans are True or False; other values are parsed as Python literals, bare words as strings.")
