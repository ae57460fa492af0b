"""Exception types shared by the pgvlift members."""


class PgvliftError(Exception):
    """Base class for pgvlift errors"""


class ConfigError(PgvliftError, ValueError):
    """Malformed manifest, reference metadata or driver parameters"""


class InputError(PgvliftError, ValueError):
    """Missing or unreadable input file, or input of the wrong shape"""


class FormatError(PgvliftError, ValueError):
    """Value that cannot be parsed, e.g. a color that is not hexadecimal"""
