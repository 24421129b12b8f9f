# Metrics module - tick schema, JSONL logging and run hashing
from .schema import SCHEMA_VERSION, TickData
from .logger import JsonlLogger
from .hash import RunHash, run_hash, tick_hash
