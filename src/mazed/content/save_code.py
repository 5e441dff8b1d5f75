from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from mazed.sim.hash import make_checksum
from mazed.sim.items import is_tool_id

logger = logging.getLogger(__name__)

SAVE_CODE_PREFIX = "MAZED"
SAVE_VERSION = 2
BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_BASE62_INDEX = {symbol: index for index, symbol in enumerate(BASE62_ALPHABET)}
_CODE_PATTERN = re.compile(r"^MAZED-([A-Za-z0-9]+)-([A-Za-z0-9]{6})$")

PLAYER_CHARACTER_IDS = ("character_male_1", "character_female_1", "character_male_2", "character_female_2")
DEFAULT_PLAYER_CHARACTER_ID = PLAYER_CHARACTER_IDS[0]

ERROR_INVALID_FORMAT = "invalid_format"
ERROR_CHECKSUM_MISMATCH = "checksum_mismatch"
ERROR_UNSUPPORTED_VERSION = "unsupported_version"
ERROR_DECODE_FAILED = "decode_failed"
SAVE_ERROR_CODES = (ERROR_INVALID_FORMAT, ERROR_CHECKSUM_MISMATCH, ERROR_UNSUPPORTED_VERSION, ERROR_DECODE_FAILED)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _require_int(value: Any, *, field_name: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"save.{field_name} must be an integer")
    if value < minimum:
        raise ValueError(f"save.{field_name} must be >= {minimum}")
    return value


def _level_key(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    try:
        level = int(raw)
    except (TypeError, ValueError):
        return None
    if str(level) != str(raw).strip() or level <= 0:
        return None
    return level


def _sanitize_timing_map(value: Any) -> dict[int, int]:
    if not isinstance(value, dict):
        return {}
    output: dict[int, int] = {}
    for raw_key, raw_seconds in value.items():
        level = _level_key(raw_key)
        if level is None or not _is_number(raw_seconds) or raw_seconds < 0:
            continue
        output[level] = math.floor(raw_seconds)
    return dict(sorted(output.items()))


def _sanitize_picked_up_items(value: Any) -> dict[int, list[str]]:
    if not isinstance(value, dict):
        return {}
    output: dict[int, list[str]] = {}
    for raw_key, ids in value.items():
        level = _level_key(raw_key)
        if level is None or not isinstance(ids, (list, tuple)):
            continue
        kept = list(dict.fromkeys(spawn_id for spawn_id in ids if isinstance(spawn_id, str)))
        if kept:
            output[level] = kept
    return dict(sorted(output.items()))


@dataclass
class SaveState:
    """Portable progress snapshot; normalizes its fields on construction."""

    seed: str
    current_level: int = 1
    version: int = SAVE_VERSION
    player_character_id: str = DEFAULT_PLAYER_CHARACTER_ID
    unlocked_tools: int = 0
    inventory: list[int] = field(default_factory=list)
    completed_levels: list[int] = field(default_factory=list)
    artifacts: int = 0
    playtime: int = 0
    first_entry_times: dict[int, int] = field(default_factory=dict)
    first_completion_times: dict[int, int] = field(default_factory=dict)
    active_tool_id: str | None = None
    active_tool_expiry: int | None = None
    collected_shards: int = 0
    picked_up_items: dict[int, list[str]] = field(default_factory=dict)
    portal_hub_unlocked: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.seed, str) or not self.seed:
            raise ValueError("save.seed must be a non-empty string")
        _require_int(self.version, field_name="version", minimum=1)
        _require_int(self.current_level, field_name="current_level", minimum=1)
        _require_int(self.unlocked_tools, field_name="unlocked_tools")
        _require_int(self.artifacts, field_name="artifacts")

        if not _is_number(self.playtime) or self.playtime < 0:
            raise ValueError("save.playtime must be a non-negative number")
        self.playtime = math.floor(self.playtime)

        if not isinstance(self.inventory, (list, tuple)):
            raise ValueError("save.inventory must be a list")
        self.inventory = [_require_int(entry, field_name="inventory[]") for entry in self.inventory]

        if not isinstance(self.completed_levels, (list, tuple, set)):
            raise ValueError("save.completed_levels must be a list")
        self.completed_levels = sorted(
            {_require_int(level, field_name="completed_levels[]", minimum=1) for level in self.completed_levels}
        )

        self.first_entry_times = _sanitize_timing_map(self.first_entry_times)
        self.first_completion_times = _sanitize_timing_map(self.first_completion_times)
        self.picked_up_items = _sanitize_picked_up_items(self.picked_up_items)

        if self.player_character_id not in PLAYER_CHARACTER_IDS:
            self.player_character_id = DEFAULT_PLAYER_CHARACTER_ID
        if not is_tool_id(self.active_tool_id):
            self.active_tool_id = None
        if self.active_tool_id is None or not _is_number(self.active_tool_expiry):
            self.active_tool_expiry = None
        else:
            self.active_tool_expiry = math.floor(self.active_tool_expiry)
        self.collected_shards = max(0, math.floor(self.collected_shards)) if _is_number(self.collected_shards) else 0
        self.portal_hub_unlocked = bool(self.portal_hub_unlocked)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "seed": self.seed,
            "playerCharacterId": self.player_character_id,
            "currentMaze": self.current_level,
            "unlockedTools": self.unlocked_tools,
            "inventory": list(self.inventory),
            "completedMazes": list(self.completed_levels),
            "artifacts": self.artifacts,
            "playtime": self.playtime,
            "mazeFirstEntryTimes": {str(level): seconds for level, seconds in self.first_entry_times.items()},
            "mazeFirstCompletionTimes": {
                str(level): seconds for level, seconds in self.first_completion_times.items()
            },
            "activeToolId": self.active_tool_id,
            "activeToolExpiry": self.active_tool_expiry,
            "collectedShards": self.collected_shards,
            "pickedUpItems": {str(level): list(ids) for level, ids in self.picked_up_items.items()},
            "portalHubUnlocked": self.portal_hub_unlocked,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SaveState":
        if not isinstance(data, dict):
            raise ValueError("save payload must be an object")
        if "seed" not in data or "currentMaze" not in data:
            raise ValueError("save payload must contain seed and currentMaze")
        return cls(
            version=data.get("version", SAVE_VERSION),
            seed=data["seed"],
            player_character_id=data.get("playerCharacterId", DEFAULT_PLAYER_CHARACTER_ID),
            current_level=data["currentMaze"],
            unlocked_tools=data.get("unlockedTools", 0),
            inventory=data.get("inventory", []),
            completed_levels=data.get("completedMazes", []),
            artifacts=data.get("artifacts", 0),
            playtime=data.get("playtime", 0),
            first_entry_times=data.get("mazeFirstEntryTimes", {}),
            first_completion_times=data.get("mazeFirstCompletionTimes", {}),
            active_tool_id=data.get("activeToolId"),
            active_tool_expiry=data.get("activeToolExpiry"),
            collected_shards=data.get("collectedShards", 0),
            picked_up_items=data.get("pickedUpItems", {}),
            portal_hub_unlocked=data.get("portalHubUnlocked", False),
        )


def _migrate_v1_to_v2(payload: dict[str, Any]) -> dict[str, Any]:
    upgraded = dict(payload)
    upgraded["version"] = 2
    upgraded["activeToolId"] = None
    upgraded["activeToolExpiry"] = None
    upgraded["collectedShards"] = 0
    upgraded["pickedUpItems"] = {}
    upgraded["portalHubUnlocked"] = False
    upgraded.setdefault("mazeFirstEntryTimes", {})
    upgraded.setdefault("mazeFirstCompletionTimes", {})
    upgraded.setdefault("playerCharacterId", DEFAULT_PLAYER_CHARACTER_ID)
    return upgraded


# Each step upgrades version N to N + 1.
SAVE_MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {1: _migrate_v1_to_v2}


def migrate_payload(payload: dict[str, Any]) -> dict[str, Any]:
    version = payload.get("version")
    while version < SAVE_VERSION:
        step = SAVE_MIGRATIONS.get(version)
        if step is None:
            raise ValueError(f"no save migration registered for version {version}")
        payload = step(payload)
        logger.debug("migrated save payload from version %s to %s", version, payload["version"])
        version = payload["version"]
    return payload


@dataclass(frozen=True)
class SaveError:
    code: str
    message: str


@dataclass(frozen=True)
class SaveDecodeResult:
    value: SaveState | None = None
    error: SaveError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SaveCodeError(ValueError):
    def __init__(self, error: SaveError) -> None:
        super().__init__(f"{error.code}: {error.message}")
        self.code = error.code
        self.error = error


def _failure(code: str, message: str) -> SaveDecodeResult:
    return SaveDecodeResult(error=SaveError(code=code, message=message))


def bytes_to_base62_pairs(data: bytes) -> str:
    return "".join(BASE62_ALPHABET[byte // 62] + BASE62_ALPHABET[byte % 62] for byte in data)


def base62_pairs_to_bytes(encoded: str) -> bytes | None:
    if len(encoded) % 2 != 0:
        return None
    output = bytearray()
    for index in range(0, len(encoded), 2):
        high = _BASE62_INDEX.get(encoded[index])
        low = _BASE62_INDEX.get(encoded[index + 1])
        if high is None or low is None:
            return None
        value = high * 62 + low
        if value > 255:
            return None
        output.append(value)
    return bytes(output)


class SaveCodec:
    """`MAZED-<payload>-<checksum>` portable save codes."""

    @staticmethod
    def encode(state: SaveState) -> str:
        payload = state.to_dict()
        payload["version"] = SAVE_VERSION
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        encoded = bytes_to_base62_pairs(text.encode("utf-8"))
        return f"{SAVE_CODE_PREFIX}-{encoded}-{make_checksum(encoded)}"

    @staticmethod
    def decode(code: str) -> SaveDecodeResult:
        if not isinstance(code, str):
            return _failure(ERROR_INVALID_FORMAT, "Code format is invalid")
        match = _CODE_PATTERN.match(code.strip())
        if match is None:
            return _failure(ERROR_INVALID_FORMAT, "Code format is invalid")

        payload_text, checksum = match.groups()
        if checksum != make_checksum(payload_text):
            return _failure(ERROR_CHECKSUM_MISMATCH, "Code failed validation")

        raw = base62_pairs_to_bytes(payload_text)
        if raw is None:
            return _failure(ERROR_INVALID_FORMAT, "Code format is invalid")

        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (ValueError, RecursionError):
            return _failure(ERROR_DECODE_FAILED, "Code format is invalid")
        if not isinstance(parsed, dict):
            return _failure(ERROR_DECODE_FAILED, "Code format is invalid")

        version = parsed.get("version")
        if isinstance(version, bool) or not isinstance(version, int) or not 1 <= version <= SAVE_VERSION:
            return _failure(ERROR_UNSUPPORTED_VERSION, "Code version not supported")

        try:
            state = SaveState.from_dict(migrate_payload(parsed))
        except (ValueError, TypeError, OverflowError) as exc:
            logger.debug("save payload rejected: %s", exc)
            return _failure(ERROR_DECODE_FAILED, "Code format is invalid")
        return SaveDecodeResult(value=state)

    @classmethod
    def decode_or_raise(cls, code: str) -> SaveState:
        result = cls.decode(code)
        if result.error is not None:
            raise SaveCodeError(result.error)
        if result.value is None:
            raise RuntimeError("save decode produced neither a state nor an error")
        return result.value
