"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(default="", max_length=200)
    password: str = Field(default="", max_length=200)


class LoginResponse(BaseModel):
    token: str
    user: str


class Principal(BaseModel):
    username: str
