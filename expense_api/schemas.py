"""Pydantic schemas for serialising expense service responses."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated, Dict, List

from pydantic import BaseModel, ConfigDict, PlainSerializer

JsonAmount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ExpenseRead(ORMModel):
    id: str
    description: str
    amount: JsonAmount
    category: str
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class MessageRead(BaseModel):
    message: str


class ValidationErrorRead(MessageRead):
    errors: Dict[str, List[str]]
