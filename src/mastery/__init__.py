"""mastery: confidence tracking and spaced-repetition scheduling."""

from mastery.consts import VERSION

__version__ = VERSION
