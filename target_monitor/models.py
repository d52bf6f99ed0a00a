from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .core.exceptions import DuplicateTargetError


class CheckStatus(str, Enum):
    """
    Status for et enkelt probe-resultat.

    Websites bruger UP/DOWN, file shares bruger OK/ERROR.
    """

    UP = "up"
    DOWN = "down"
    OK = "ok"
    ERROR = "error"


class TargetKind(str, Enum):
    WEBSITE = "website"
    FILE_STORE = "file_store"


class MonitorModel(BaseModel):
    """Shared config: camelCase on the wire, snake_case in Python, immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# --- Targets ---


class WebsiteTarget(MonitorModel):
    url: str = Field(..., min_length=1, description="URL der tjekkes (unik nøgle)")
    name: Optional[str] = Field(default=None, description="Visningsnavn")

    @property
    def key(self) -> str:
        return self.url

    @property
    def display_name(self) -> str:
        return self.name or self.url


class FileStoreTarget(MonitorModel):
    account_name: Optional[str] = Field(default=None, description="Storage account")
    share_name: str = Field(..., min_length=1, description="File share navn")
    sas_url: Optional[str] = Field(
        default=None, repr=False, description="Account SAS URL (adgangsmetode 1)"
    )
    credential: Optional[Any] = Field(
        default=None, repr=False, description="Opaque credential (adgangsmetode 2)"
    )
    name: Optional[str] = Field(default=None, description="Visningsnavn")
    directories: Optional[Tuple[str, ...]] = Field(
        default=None,
        description="Begræns traversal til præcis disse directories i stedet for share root",
    )

    @field_validator("directories", mode="before")
    @classmethod
    def _dedupe_directories(cls, value):
        # Ordered set: keep first occurrence
        if value is None:
            return None
        return tuple(dict.fromkeys(value))

    @property
    def key(self) -> str:
        if self.account_name:
            return f"{self.account_name}/{self.share_name}"
        return self.name or self.sas_url or self.share_name

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.account_name:
            return f"{self.account_name}/{self.share_name}"
        return self.share_name

    @property
    def has_explicit_directories(self) -> bool:
        return bool(self.directories)


class TargetSet(MonitorModel):
    """Immutable liste af alle targets; erstattes som helhed ved config-ændringer."""

    websites: Tuple[WebsiteTarget, ...] = ()
    file_stores: Tuple[FileStoreTarget, ...] = Field(
        default=(), alias="azureFileStorages"
    )

    @model_validator(mode="after")
    def _unique_keys(self) -> "TargetSet":
        for kind, targets in (
            (TargetKind.WEBSITE, self.websites),
            (TargetKind.FILE_STORE, self.file_stores),
        ):
            seen = set()
            for target in targets:
                if target.key in seen:
                    raise DuplicateTargetError(kind.value, target.key)
                seen.add(target.key)
        return self

    def __len__(self) -> int:
        return len(self.websites) + len(self.file_stores)


# --- Results ---


class WebsiteCheckResult(MonitorModel):
    url: str
    name: str
    status: CheckStatus
    status_code: int = Field(default=0, ge=0, description="0 hvis intet svar blev modtaget")
    response_time_millis: int = Field(default=0, ge=0)
    timestamp: datetime
    message: str


class DirectoryBreakdownEntry(MonitorModel):
    """Per-directory aggregat, eller en fejl hvis netop det directory fejlede."""

    count: Optional[int] = Field(default=None, ge=0)
    oldest_file_timestamp: Optional[datetime] = None
    newest_file_timestamp: Optional[datetime] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, message: str) -> "DirectoryBreakdownEntry":
        return cls(error=message)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @model_serializer(mode="wrap")
    def _serialize(self, handler):
        data = handler(self)
        if self.error is not None:
            return {"error": self.error}
        data.pop("error", None)
        return data


class StoreCheckResult(MonitorModel):
    account_name: Optional[str] = None
    share_name: str
    name: str
    status: CheckStatus
    file_count: int = Field(default=0, ge=0)
    timestamp: datetime
    message: str
    directory_breakdown: Optional[Dict[str, DirectoryBreakdownEntry]] = None

    @model_serializer(mode="wrap")
    def _serialize(self, handler):
        data = handler(self)
        # Breakdown is only present when explicit directories were requested
        for key in ("directoryBreakdown", "directory_breakdown"):
            if key in data and data[key] is None:
                del data[key]
        return data


class Snapshot(MonitorModel):
    """Et komplet sæt resultater for én monitoring cyklus."""

    website_results: Dict[str, WebsiteCheckResult] = Field(default_factory=dict)
    store_results: Dict[str, StoreCheckResult] = Field(default_factory=dict)
    last_update: Optional[datetime] = None
    generation: int = Field(default=0, exclude=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
