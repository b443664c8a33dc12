"""Pydantic v2 schemas for contact requests from the public site."""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

ContactStatus = Literal["new", "read", "replied", "archived"]


class ContactRequestCreate(BaseModel):
    """Cleaned-up form submission. Built by the router from form fields."""

    name: str
    email: str
    phone: str | None = None
    budget: str | None = None
    contractor_involved: bool = False
    designer_involved: bool = False
    additional_details: str | None = None
    message: str


class ContactRequestUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: ContactStatus


class ContactRequestOut(BaseModel):
    id: str
    name: str
    email: str
    phone: str | None = None
    message: str
    budget: str | None = None
    contractor_involved: bool | None = None
    designer_involved: bool | None = None
    additional_details: str | None = None
    status: ContactStatus = "new"
    created_at: datetime.datetime


class ContactSubmitted(BaseModel):
    success: bool = True
    message: str = "Contact request submitted successfully"
