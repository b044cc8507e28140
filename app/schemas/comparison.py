from typing import List, Optional

from pydantic import BaseModel

from app.schemas.property import Property


class ComparisonRow(BaseModel):
    label: str
    values: List[str]


class ComparisonResponse(BaseModel):
    properties: List[Property]
    count: int
    max_size: int
    table: List[ComparisonRow] = []
    added: Optional[bool] = None
    notice: Optional[str] = None
