"""Message shapes exchanged with the Field Service host frame.

Every message kind is a flat dataclass keyed by its ``method`` tag. There is no
inheritance between them: the dispatcher switches on the tag of a parsed
:class:`Envelope` and then narrows it with the matching ``from_envelope``.
Fields the schema below does not know about are kept in ``extras`` so vendor
specific properties survive the round trip.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union

API_VERSION = 1
UNSET_API_VERSION = -1

NO_METHOD = "no method"

READY_METHOD = "ready"
INIT_METHOD = "init"
INIT_END_METHOD = "initEnd"
OPEN_METHOD = "open"
UPDATE_METHOD = "update"
UPDATE_RESULT_METHOD = "updateResult"
CLOSE_METHOD = "close"
CALL_PROCEDURE_METHOD = "callProcedure"
CALL_PROCEDURE_RESULT_METHOD = "callProcedureResult"
ERROR_METHOD = "error"
WAKEUP_METHOD = "wakeup"

INBOUND_METHODS = frozenset(
    {
        INIT_METHOD,
        OPEN_METHOD,
        UPDATE_RESULT_METHOD,
        CALL_PROCEDURE_RESULT_METHOD,
        WAKEUP_METHOD,
        ERROR_METHOD,
    }
)
OUTBOUND_METHODS = frozenset(
    {
        READY_METHOD,
        CLOSE_METHOD,
        UPDATE_METHOD,
        CALL_PROCEDURE_METHOD,
        INIT_END_METHOD,
    }
)

BACKEND_APPLICATION_TYPE = "ofs"
ACCESS_TOKEN_PROCEDURE = "getAccessToken"


def _strip_none(mapping: Dict[str, Any]) -> Dict[str, Any]:
    """Return *mapping* without keys whose value is ``None``."""

    return {key: value for key, value in mapping.items() if value is not None}


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_bool(value: Any) -> bool | None:
    if value is None:
        return None
    return bool(value)


def _optional_mapping(value: Any) -> Dict[str, Any] | None:
    if not isinstance(value, Mapping):
        return None
    return dict(value)


def _optional_list(value: Any) -> List[Any] | None:
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def _split_fields(
    fields: Mapping[str, Any],
    known: Tuple[str, ...],
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Partition *fields* into the schema-known keys and the extras."""

    known_values = {key: fields.get(key) for key in known}
    extras = {key: value for key, value in fields.items() if key not in known}
    return known_values, extras


def _frame_dict(method: str, api_version: int, body: Dict[str, Any], extras: Mapping[str, Any]) -> Dict[str, Any]:
    data: Dict[str, Any] = {"apiVersion": int(api_version), "method": method}
    data.update(extras)
    data.update(_strip_none(body))
    return data


@dataclass(slots=True)
class Envelope:
    """Untyped view of any message: tag, api version and the remaining fields."""

    method: str = NO_METHOD
    api_version: int = UNSET_API_VERSION
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_sentinel(self) -> bool:
        return self.method == NO_METHOD

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.fields)
        data["apiVersion"] = int(self.api_version)
        data["method"] = self.method
        return data


@dataclass(slots=True, frozen=True)
class Environment:
    """Host environment descriptor carried by most inbound messages."""

    name: str | None = None
    fs_url: str | None = None
    fa_url: str | None = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extras)
        data.update(
            _strip_none(
                {
                    "environmentName": self.name,
                    "fsUrl": self.fs_url,
                    "faUrl": self.fa_url,
                }
            )
        )
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Environment | None":
        if not isinstance(data, Mapping):
            return None
        known, extras = _split_fields(data, ("environmentName", "fsUrl", "faUrl"))
        return cls(
            name=_optional_str(known["environmentName"]),
            fs_url=_optional_str(known["fsUrl"]),
            fa_url=_optional_str(known["faUrl"]),
            extras=extras,
        )


@dataclass(slots=True, frozen=True)
class Application:
    """One entry of the host-declared application registry."""

    key: str
    type: str | None = None
    resource_url: str | None = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_backend(self) -> bool:
        return self.type == BACKEND_APPLICATION_TYPE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extras)
        data.update(_strip_none({"type": self.type, "resourceUrl": self.resource_url}))
        return data


def applications_from_dict(data: Any) -> Dict[str, Application]:
    """Decode the ``applications`` registry, skipping malformed entries."""

    if not isinstance(data, Mapping):
        return {}
    registry: Dict[str, Application] = {}
    for key, entry in data.items():
        if not isinstance(entry, Mapping):
            continue
        known, extras = _split_fields(entry, ("type", "resourceUrl"))
        registry[str(key)] = Application(
            key=str(key),
            type=_optional_str(known["type"]),
            resource_url=_optional_str(known["resourceUrl"]),
            extras=extras,
        )
    return registry


@dataclass(slots=True, frozen=True)
class SecuredData:
    """Inline secured parameters configured for the plugin on the host."""

    instance: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_credentials(self) -> bool:
        return bool(self.instance and self.client_id and self.client_secret)

    def __repr__(self) -> str:
        secret = "***" if self.client_secret else None
        return (
            f"SecuredData(instance={self.instance!r}, client_id={self.client_id!r}, "
            f"client_secret={secret!r}, extras={sorted(self.extras)!r})"
        )

    @classmethod
    def from_dict(cls, data: Any) -> "SecuredData | None":
        if not isinstance(data, Mapping):
            return None
        known, extras = _split_fields(data, ("ofsInstance", "ofsClientId", "ofsClientSecret"))
        return cls(
            instance=_optional_str(known["ofsInstance"]),
            client_id=_optional_str(known["ofsClientId"]),
            client_secret=_optional_str(known["ofsClientSecret"]),
            extras=extras,
        )


# --------------------------------------------------------------------------
# Outbound messages


@dataclass(slots=True)
class ReadyMessage:
    method: ClassVar[str] = READY_METHOD
    send_init_data: bool | None = None
    enable_back_button: bool | None = None
    show_header: bool | None = None
    send_message_as_js_object: bool | None = None
    api_version: int = API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = (
        "sendInitData",
        "enableBackButton",
        "showHeader",
        "sendMessageAsJsObject",
    )

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "sendInitData": self.send_init_data,
            "enableBackButton": self.enable_back_button,
            "showHeader": self.show_header,
            "sendMessageAsJsObject": self.send_message_as_js_object,
        }
        return _frame_dict(self.method, self.api_version, body, self.extras)

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "ReadyMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            send_init_data=_optional_bool(known["sendInitData"]),
            enable_back_button=_optional_bool(known["enableBackButton"]),
            show_header=_optional_bool(known["showHeader"]),
            send_message_as_js_object=_optional_bool(known["sendMessageAsJsObject"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class InitEndMessage:
    method: ClassVar[str] = INIT_END_METHOD
    wakeup_needed: bool | None = None
    wake_on_events: Dict[str, Any] | None = None
    api_version: int = API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("wakeupNeeded", "wakeOnEvents")

    def to_dict(self) -> Dict[str, Any]:
        body = {"wakeupNeeded": self.wakeup_needed, "wakeOnEvents": self.wake_on_events}
        return _frame_dict(self.method, self.api_version, body, self.extras)

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "InitEndMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            wakeup_needed=_optional_bool(known["wakeupNeeded"]),
            wake_on_events=_optional_mapping(known["wakeOnEvents"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class UpdateMessage:
    method: ClassVar[str] = UPDATE_METHOD
    activity: Dict[str, Any] | None = None
    inventory_list: Dict[str, Any] | None = None
    back_screen: str | None = None
    wakeup_needed: bool | None = None
    api_version: int = API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("activity", "inventoryList", "backScreen", "wakeupNeeded")

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "activity": self.activity,
            "inventoryList": self.inventory_list,
            "backScreen": self.back_screen,
            "wakeupNeeded": self.wakeup_needed,
        }
        return _frame_dict(self.method, self.api_version, body, self.extras)

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "UpdateMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            activity=_optional_mapping(known["activity"]),
            inventory_list=_optional_mapping(known["inventoryList"]),
            back_screen=_optional_str(known["backScreen"]),
            wakeup_needed=_optional_bool(known["wakeupNeeded"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class CloseMessage:
    method: ClassVar[str] = CLOSE_METHOD
    activity: Dict[str, Any] | None = None
    inventory_list: Dict[str, Any] | None = None
    back_screen: str | None = None
    wakeup_needed: bool | None = None
    api_version: int = API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("activity", "inventoryList", "backScreen", "wakeupNeeded")

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "activity": self.activity,
            "inventoryList": self.inventory_list,
            "backScreen": self.back_screen,
            "wakeupNeeded": self.wakeup_needed,
        }
        return _frame_dict(self.method, self.api_version, body, self.extras)

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "CloseMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            activity=_optional_mapping(known["activity"]),
            inventory_list=_optional_mapping(known["inventoryList"]),
            back_screen=_optional_str(known["backScreen"]),
            wakeup_needed=_optional_bool(known["wakeupNeeded"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class CallProcedureMessage:
    method: ClassVar[str] = CALL_PROCEDURE_METHOD
    call_id: str
    procedure: str
    params: Dict[str, Any] | None = None
    api_version: int = API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("callId", "procedure", "params")

    def to_dict(self) -> Dict[str, Any]:
        body = {"callId": self.call_id, "procedure": self.procedure, "params": self.params}
        return _frame_dict(self.method, self.api_version, body, self.extras)

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "CallProcedureMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            call_id=str(known["callId"] or ""),
            procedure=str(known["procedure"] or ""),
            params=_optional_mapping(known["params"]),
            api_version=envelope.api_version,
            extras=extras,
        )


# --------------------------------------------------------------------------
# Inbound messages


@dataclass(slots=True)
class InitMessage:
    method: ClassVar[str] = INIT_METHOD
    applications: Dict[str, Application] = field(default_factory=dict)
    raw_applications: Dict[str, Any] | None = None
    environment: Environment | None = None
    attribute_description: Dict[str, Any] | None = None
    buttons: List[Any] | None = None
    api_version: int = UNSET_API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("applications", "environment", "attributeDescription", "buttons")

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "InitMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            applications=applications_from_dict(known["applications"]),
            raw_applications=_optional_mapping(known["applications"]),
            environment=Environment.from_dict(known["environment"]),
            attribute_description=_optional_mapping(known["attributeDescription"]),
            buttons=_optional_list(known["buttons"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class OpenMessage:
    method: ClassVar[str] = OPEN_METHOD
    entity: str | None = None
    environment: Environment | None = None
    secured_data: SecuredData | None = None
    activity: Dict[str, Any] | None = None
    user: Dict[str, Any] | None = None
    resource: Dict[str, Any] | None = None
    queue: Dict[str, Any] | None = None
    inventory_list: Dict[str, Any] | None = None
    open_params: Dict[str, Any] | None = None
    allowed_procedures: Dict[str, Any] | None = None
    button_id: str | None = None
    api_version: int = UNSET_API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = (
        "entity",
        "environment",
        "securedData",
        "activity",
        "user",
        "resource",
        "queue",
        "inventoryList",
        "openParams",
        "allowedProcedures",
        "buttonId",
    )

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "OpenMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            entity=_optional_str(known["entity"]),
            environment=Environment.from_dict(known["environment"]),
            secured_data=SecuredData.from_dict(known["securedData"]),
            activity=_optional_mapping(known["activity"]),
            user=_optional_mapping(known["user"]),
            resource=_optional_mapping(known["resource"]),
            queue=_optional_mapping(known["queue"]),
            inventory_list=_optional_mapping(known["inventoryList"]),
            open_params=_optional_mapping(known["openParams"]),
            allowed_procedures=_optional_mapping(known["allowedProcedures"]),
            button_id=_optional_str(known["buttonId"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class UpdateResultMessage:
    method: ClassVar[str] = UPDATE_RESULT_METHOD
    activity: Dict[str, Any] | None = None
    inventory_list: Dict[str, Any] | None = None
    environment: Environment | None = None
    api_version: int = UNSET_API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("activity", "inventoryList", "environment")

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "UpdateResultMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            activity=_optional_mapping(known["activity"]),
            inventory_list=_optional_mapping(known["inventoryList"]),
            environment=Environment.from_dict(known["environment"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class CallProcedureResultMessage:
    method: ClassVar[str] = CALL_PROCEDURE_RESULT_METHOD
    call_id: str | None = None
    procedure: str | None = None
    result_data: Any = None
    environment: Environment | None = None
    api_version: int = UNSET_API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("callId", "procedure", "resultData", "environment")

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "CallProcedureResultMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            call_id=_optional_str(known["callId"]),
            procedure=_optional_str(known["procedure"]),
            result_data=known["resultData"],
            environment=Environment.from_dict(known["environment"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class ErrorMessage:
    method: ClassVar[str] = ERROR_METHOD
    errors: List[Any] = field(default_factory=list)
    environment: Environment | None = None
    api_version: int = UNSET_API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("errors", "environment")

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "ErrorMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            errors=_optional_list(known["errors"]) or [],
            environment=Environment.from_dict(known["environment"]),
            api_version=envelope.api_version,
            extras=extras,
        )


@dataclass(slots=True)
class WakeupMessage:
    method: ClassVar[str] = WAKEUP_METHOD
    environment: Environment | None = None
    api_version: int = UNSET_API_VERSION
    extras: Dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[Tuple[str, ...]] = ("environment",)

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "WakeupMessage":
        known, extras = _split_fields(envelope.fields, cls._KNOWN)
        return cls(
            environment=Environment.from_dict(known["environment"]),
            api_version=envelope.api_version,
            extras=extras,
        )


HostMessage = Union[
    InitMessage,
    OpenMessage,
    UpdateResultMessage,
    CallProcedureResultMessage,
    ErrorMessage,
    WakeupMessage,
]

PluginMessage = Union[
    ReadyMessage,
    InitEndMessage,
    UpdateMessage,
    CloseMessage,
    CallProcedureMessage,
]

MESSAGE_TYPES: Dict[str, Any] = {
    READY_METHOD: ReadyMessage,
    INIT_METHOD: InitMessage,
    INIT_END_METHOD: InitEndMessage,
    OPEN_METHOD: OpenMessage,
    UPDATE_METHOD: UpdateMessage,
    UPDATE_RESULT_METHOD: UpdateResultMessage,
    CLOSE_METHOD: CloseMessage,
    CALL_PROCEDURE_METHOD: CallProcedureMessage,
    CALL_PROCEDURE_RESULT_METHOD: CallProcedureResultMessage,
    ERROR_METHOD: ErrorMessage,
    WAKEUP_METHOD: WakeupMessage,
}


def message_environment(message: Any) -> Optional[Environment]:
    """Return the environment descriptor carried by *message*, if any."""

    return getattr(message, "environment", None)


__all__ = [
    "API_VERSION",
    "UNSET_API_VERSION",
    "NO_METHOD",
    "READY_METHOD",
    "INIT_METHOD",
    "INIT_END_METHOD",
    "OPEN_METHOD",
    "UPDATE_METHOD",
    "UPDATE_RESULT_METHOD",
    "CLOSE_METHOD",
    "CALL_PROCEDURE_METHOD",
    "CALL_PROCEDURE_RESULT_METHOD",
    "ERROR_METHOD",
    "WAKEUP_METHOD",
    "INBOUND_METHODS",
    "OUTBOUND_METHODS",
    "BACKEND_APPLICATION_TYPE",
    "ACCESS_TOKEN_PROCEDURE",
    "Envelope",
    "Environment",
    "Application",
    "applications_from_dict",
    "SecuredData",
    "ReadyMessage",
    "InitEndMessage",
    "UpdateMessage",
    "CloseMessage",
    "CallProcedureMessage",
    "InitMessage",
    "OpenMessage",
    "UpdateResultMessage",
    "CallProcedureResultMessage",
    "ErrorMessage",
    "WakeupMessage",
    "HostMessage",
    "PluginMessage",
    "MESSAGE_TYPES",
    "message_environment",
]
