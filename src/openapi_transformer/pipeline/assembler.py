"""Merge transformers from command-line flags and a configuration file.

Transformers keep the order in which their flags were consumed. The
configuration file's transformers are spliced in at the position of the
``--config`` flag, so ``-t A --config file -t B`` runs ``A``, then the file's
transformers, then ``B``.
"""

from collections.abc import Iterable, Sequence
from pathlib import Path

from openapi_transformer.config import TransformerConfig
from openapi_transformer.errors import ConfigError
from openapi_transformer.references import TransformerReference

TRANSFORMER_FLAG = "transformer"
CONFIG_FLAG = "config"


def cli_references(specifiers: Iterable[str]) -> list[TransformerReference]:
    """Build references for ``--transformer`` values, resolved from the working directory."""
    return [TransformerReference(specifier) for specifier in specifiers]


def config_position(flag_order: Sequence[str]) -> int | None:
    """
    Find where the configuration file's transformers belong.

    Args:
        flag_order: Option names in the order the argument parser consumed them,
                    one entry per occurrence

    Returns:
        The number of transformer flags preceding the configuration flag,
        or None if no configuration flag was given

    Raises:
        ConfigError: If more than one configuration flag was given
    """
    position = None
    transformers_seen = 0
    for name in flag_order:
        if name == TRANSFORMER_FLAG:
            transformers_seen += 1
        elif name == CONFIG_FLAG:
            if position is not None:
                raise ConfigError("Only one configuration file may be given")
            position = transformers_seen
    return position


def assemble(
    cli: Sequence[TransformerReference],
    config: TransformerConfig | None = None,
    config_origin: Path | None = None,
    position: int | None = None,
) -> list[TransformerReference]:
    """
    Merge command-line and configuration file transformers into one ordered list.

    Args:
        cli: References from ``--transformer`` flags, in flag order
        config: Parsed configuration file, if one was given
        config_origin: Directory of the configuration file
                       (None when it was read from stdin)
        position: Number of ``--transformer`` flags before ``--config``;
                  None places the configuration transformers last

    Returns:
        A new list of references in application order

    Raises:
        ValueError: If position is outside the command-line list
    """
    merged = list(cli)
    if config is None:
        return merged

    if position is None:
        position = len(merged)
    if not 0 <= position <= len(merged):
        raise ValueError(f"Configuration position {position} out of range 0..{len(merged)}")

    merged[position:position] = config.references(config_origin)
    return merged
