"""Suggest schemas"""
from typing import List

from pydantic import Field

from .base import BaseSchema


class RelatedLink(BaseSchema):
    """ラッコキーワードへのリンク"""
    keyword: str
    url: str


class SuggestResult(BaseSchema):
    """サジェスト結果（候補と同じ順序でリンクを持つ）"""
    q: str
    suggestions: List[str] = Field(default_factory=list)
    rakkokeyword_links: List[RelatedLink] = Field(default_factory=list)
