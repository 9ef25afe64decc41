from pydantic import BaseModel, Field, StrictInt, field_validator


class Holding(BaseModel):
    symbol: str
    quantity: StrictInt = Field(ge=1)

    @field_validator("symbol")
    @classmethod
    def require_symbol(cls, value: str) -> str:
        if not value:
            raise ValueError("symbol must not be empty")
        return value


class NewHolding(BaseModel):
    symbol: str = ""
    quantity: int | float | None = None


class QuantityUpdate(BaseModel):
    quantity: int | float | None = None


class CsvImport(BaseModel):
    csv: str
