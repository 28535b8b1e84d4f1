"""Background harvester for apartment listings on avito.ru."""

__version__ = "0.1.0"
