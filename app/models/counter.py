from sqlmodel import Field, SQLModel


class Counter(SQLModel, table=True):
    """Named monotonic sequence ("appointment", "payment", "therapist")."""

    __tablename__ = "counters"
    name: str = Field(primary_key=True)
    seq: int = 0
