"""
Localization schemas.
"""

from pydantic import BaseModel
from typing import Dict, List


class LanguageInfo(BaseModel):
    code: str
    name: str
    native_name: str
    rtl: bool = False


class LanguagesResponse(BaseModel):
    default: str
    languages: List[LanguageInfo]


class MessageCatalogResponse(BaseModel):
    language: str
    rtl: bool
    messages: Dict[str, str]
