"""Sehat Sathi – Intent Definitions.

Intents are a closed set of tagged variants. The ``name`` field is the tag,
shared by the rule parser and the AI classifier's JSON output.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class IntentName(str, Enum):
    """User intent categories."""

    HELP = "help"
    HYGIENE = "hygiene"
    VACCINES = "vaccines"
    SYMPTOMS = "symptoms"
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    SET_LOCATION = "set_location"
    ADD_CHILD = "add_child"
    UNKNOWN = "unknown"


class _IntentBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class HelpIntent(_IntentBase):
    name: Literal["help"] = "help"


class HygieneIntent(_IntentBase):
    name: Literal["hygiene"] = "hygiene"


class VaccinesIntent(_IntentBase):
    name: Literal["vaccines"] = "vaccines"


class SymptomsIntent(_IntentBase):
    name: Literal["symptoms"] = "symptoms"
    disease: str | None = None


class SubscribeIntent(_IntentBase):
    name: Literal["subscribe"] = "subscribe"


class UnsubscribeIntent(_IntentBase):
    name: Literal["unsubscribe"] = "unsubscribe"


class SetLocationIntent(_IntentBase):
    name: Literal["set_location"] = "set_location"
    area: str | None = None


class AddChildIntent(_IntentBase):
    """``child_name``/``dob`` are both None when the command was incomplete."""

    name: Literal["add_child"] = "add_child"
    child_name: str | None = Field(default=None, alias="childName")
    dob: str | None = None


class UnknownIntent(_IntentBase):
    name: Literal["unknown"] = "unknown"


Intent = Annotated[
    Union[
        HelpIntent,
        HygieneIntent,
        VaccinesIntent,
        SymptomsIntent,
        SubscribeIntent,
        UnsubscribeIntent,
        SetLocationIntent,
        AddChildIntent,
        UnknownIntent,
    ],
    Field(discriminator="name"),
]

INTENT_ADAPTER: TypeAdapter[Intent] = TypeAdapter(Intent)

# Default disease when "symptoms" is asked without one
DEFAULT_DISEASE = "influenza"
