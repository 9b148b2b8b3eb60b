from conversational_client.storage.base import KeyValueStorage, load_json, save_json
from conversational_client.storage.in_memory import InMemoryKeyValueStorage
from conversational_client.storage.json_file import JSONFileKeyValueStorage

__all__ = [
    "InMemoryKeyValueStorage",
    "JSONFileKeyValueStorage",
    "KeyValueStorage",
    "load_json",
    "save_json",
]
