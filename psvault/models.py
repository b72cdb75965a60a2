"""Credential model returned by the store lookup."""
from pydantic import BaseModel, Field


class CredentialRecord(BaseModel):
    """A credential record extracted from a CLIXML hashtable entry.

    ``encrypted_value`` holds the secure-string envelope and is kept out of
    ``repr()`` so records can be logged.
    """

    user_name: str = ""
    encrypted_value: str = Field(default="", repr=False)
    encryption_type: str = ""

    model_config = {"frozen": True}
