from sqlmodel import Field, SQLModel


class Patient(SQLModel, table=True):
    __tablename__ = "patients"
    id: int | None = Field(default=None, primary_key=True)
    patient_code: str = Field(unique=True, index=True)  # e.g. P0001
    name: str
    mobile: str = ""
    user_id: int | None = Field(default=None, foreign_key="users.id")


class Package(SQLModel, table=True):
    __tablename__ = "packages"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    total_sessions: int = 1
    cost_per_session: float = 0
    total_cost: float = 0


class TherapyType(SQLModel, table=True):
    __tablename__ = "therapy_types"
    id: int | None = Field(default=None, primary_key=True)
    name: str
