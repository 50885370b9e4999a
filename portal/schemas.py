"""
Pydantic schemas for the portal HTTP API.

Field names follow the JSON contract the frontend already uses, so a few of
them are camelCase.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class _FormModel(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


class CredentialsRequest(_FormModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ContactRequest(_FormModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


class SuccessResponse(BaseModel):
    success: Literal[True] = True


class ErrorResponse(BaseModel):
    error: str


class UserInfo(BaseModel):
    username: str
    isAdmin: bool


class UserStatusResponse(BaseModel):
    loggedIn: bool
    user: Optional[UserInfo] = None


class FirebaseInfo(BaseModel):
    projectId: Optional[str] = None
    database: Optional[str] = None
    serviceAccount: Optional[str] = None


class HealthResponse(BaseModel):
    status: Literal["OK"] = "OK"
    firebase: FirebaseInfo
    session: bool


class ProbeResponse(BaseModel):
    success: Literal[True] = True
    document: dict


class ProbeErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
