# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the request pipeline)
# =============================================================================
#
# These dataclasses define the shape of everything that flows through the
# core: a tool's declared contract, the parameters it accepts, and the
# finished request that the transport sends to Last.fm.
#
# THE PIPELINE (one invocation):
#
#   raw dict ──▶ validated dict ──▶ CanonicalParameters ──▶ SignedRequest
#   (agent)      (validator.py)     (merger.py)             (composer.py)
#
# Every stage returns a NEW structure.  Nothing here is mutated after it
# is built, so the same ToolContract can serve any number of concurrent
# tool calls without locks.
#
# DEFAULTS ARE TAGGED, NOT OVERLOADED:
#   "Don't send this parameter" and "send an empty string" are different
#   requests as far as Last.fm is concerned.  A Default therefore carries an
#   explicit kind (OMIT / VALUE / NOW) instead of using "" or 0 as a
#   stand-in for "nothing".
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class ParamKind(Enum):
    """Semantic type of a tool parameter (what the validator coerces to)."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING_LIST = "list of strings"
    TIMESTAMP = "unix timestamp"
    TRACK_LIST = "list of track objects"


class DefaultKind(Enum):
    OMIT = "omit"
    VALUE = "value"
    NOW = "now"


@dataclass(frozen=True)
class Default:
    """A declared default for an optional parameter.

    Use the module-level ``OMIT`` for "leave the key out of the request",
    ``Default.value(x)`` for a concrete value (falsy values included), and
    ``Default.now()`` for the current UNIX time at merge time.
    """

    kind: DefaultKind
    payload: Any = None

    @classmethod
    def value(cls, payload: Any) -> "Default":
        return cls(DefaultKind.VALUE, payload)

    @classmethod
    def now(cls) -> "Default":
        return cls(DefaultKind.NOW)

    @property
    def is_omitted(self) -> bool:
        return self.kind is DefaultKind.OMIT

    def resolve(self, clock: Callable[[], float]) -> Any:
        """Return the concrete value for this default.

        Raises ValueError for OMIT, which has no value by definition; the
        merger checks ``is_omitted`` first.
        """
        if self.kind is DefaultKind.VALUE:
            return self.payload
        if self.kind is DefaultKind.NOW:
            return int(clock())
        raise ValueError("an omitted default has no value")


OMIT = Default(DefaultKind.OMIT)


# -----------------------------------------------------------------------------
# ParamSpec — one declared parameter of a tool
# -----------------------------------------------------------------------------
# `name` is what the agent passes AND the canonical key (snake_case, e.g.
# "album_artist").  `wire` is what Last.fm calls it on the wire
# ("albumArtist").  Most parameters use the same name for both.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ParamSpec:
    name: str
    kind: ParamKind = ParamKind.STRING
    default: Default = OMIT            # Only meaningful for optional params
    wire: Optional[str] = None         # Remote API name; defaults to `name`
    description: str = ""
    minimum: Optional[int] = None      # INTEGER bounds (inclusive)
    maximum: Optional[int] = None
    max_items: Optional[int] = None    # STRING_LIST / TRACK_LIST cap

    @property
    def wire_name(self) -> str:
        return self.wire or self.name


# -----------------------------------------------------------------------------
# ToolContract — the declarative description of one tool
# -----------------------------------------------------------------------------
# One instance per tool, built once at import time in contracts.py.  The
# shared validator / merger / composer interpret it; adding a tool is a
# data change, not new code.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ToolContract:
    """Declared inputs and remote mapping for a single tool."""

    name: str                          # "love_track"
    method: str                        # "track.love"
    description: str
    category: str                      # "album", "track", "scrobble", ...
    required: tuple[ParamSpec, ...] = ()
    optional: tuple[ParamSpec, ...] = ()
    mutating: bool = False             # Writes need a signature and POST
    signed: bool = False               # Signed although it changes nothing
    needs_session: bool = False        # Sends the session key (sk)
    batch_of: Optional[str] = None     # Entry contract for batch tools
    max_batch: Optional[int] = None

    def __post_init__(self):
        required = [p.name for p in self.required]
        optional = [p.name for p in self.optional]
        overlap = set(required) & set(optional)
        if overlap:
            raise ValueError(
                f"{self.name}: parameters both required and optional: {sorted(overlap)}"
            )
        if len(set(required)) != len(required) or len(set(optional)) != len(optional):
            raise ValueError(f"{self.name}: duplicate parameter names")
        if self.needs_session and not self.requires_signature:
            raise ValueError(f"{self.name}: only signed tools carry a session key")

    @property
    def required_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.required)

    @property
    def optional_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.optional)

    @property
    def parameters(self) -> tuple[ParamSpec, ...]:
        return self.required + self.optional

    @property
    def requires_signature(self) -> bool:
        return self.mutating or self.signed

    @property
    def http_method(self) -> str:
        return "POST" if self.mutating else "GET"

    def spec_for(self, name: str) -> Optional[ParamSpec]:
        for spec in self.parameters:
            if spec.name == name:
                return spec
        return None


# CanonicalParameters: canonical name -> resolved value.  A plain dict; the
# merger is the only thing that builds one.
CanonicalParameters = dict[str, Any]


@dataclass(frozen=True)
class Credentials:
    """The application's Last.fm API key and shared secret.

    The secret only ever contributes to api_sig; it is never sent and never
    shown in repr output.
    """

    api_key: str = field(repr=False)
    secret: str = field(repr=False)


# Parameters whose values must not appear in logs.
_SENSITIVE_PARAMS = frozenset({"api_key", "sk", "api_sig", "password", "token"})


# -----------------------------------------------------------------------------
# SignedRequest — what the transport sends
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SignedRequest:
    """A fully composed Last.fm request, ready for the transport."""

    tool: str                          # "love_track"
    method: str                        # "track.love"
    http_method: str                   # "GET" or "POST"
    endpoint: str                      # "https://ws.audioscrobbler.com/2.0/"
    params: dict[str, str] = field(default_factory=dict)

    @property
    def signature(self) -> Optional[str]:
        return self.params.get("api_sig")

    @property
    def is_signed(self) -> bool:
        return "api_sig" in self.params

    def redacted(self) -> dict[str, str]:
        """Parameters with credentials masked, for logging."""
        return {
            k: ("***" if k in _SENSITIVE_PARAMS else v)
            for k, v in self.params.items()
        }
