"""Value encoding, a Mongo-style query language, sort keys, modifiers and SQL text for a document store on SQLite."""

__version__ = "0.1.0"