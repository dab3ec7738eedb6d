"""Identity models returned by the cloud /me and pairing endpoints."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeviceInfo(BaseModel):
    """Paired device as known to the cloud."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: Optional[str] = None


class UserInfo(BaseModel):
    """User that owns the paired device."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")


class AuthInfo(BaseModel):
    """Authentication state plus the resolved edge agent, if any."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    authenticated: bool = False
    mode: Optional[str] = None  # "device" | "legacy"
    device: Optional[DeviceInfo] = None
    user: Optional[UserInfo] = None
    edge_agent_id: Optional[str] = Field(default=None, alias="edgeAgentId")

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], mode: Optional[str] = None) -> "AuthInfo":
        """Build from the /me payload.

        The agent id is reported either flat (``edgeAgentId``) or nested
        (``edge: {agentId}``).
        """
        edge_agent_id = payload.get("edgeAgentId")
        edge = payload.get("edge")
        if not edge_agent_id and isinstance(edge, dict):
            edge_agent_id = edge.get("agentId")

        return cls(
            authenticated=bool(payload.get("authenticated", True)),
            mode=mode,
            device=payload.get("device"),
            user=payload.get("user"),
            edge_agent_id=edge_agent_id or None,
        )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class PairingResult(BaseModel):
    """Credentials issued in exchange for a pairing code."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    device_token: str = Field(alias="deviceToken")
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    device_name: Optional[str] = Field(default=None, alias="deviceName")
