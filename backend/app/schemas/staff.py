"""Employee and territory request/response schemas."""

from datetime import date

from pydantic import EmailStr, Field, model_validator

from app.schemas.common import MAX_ID, CamelModel

MIN_HIRING_AGE = 16


class EmployeeCreate(CamelModel):
    last_name: str = Field(min_length=1, max_length=20)
    first_name: str = Field(min_length=1, max_length=10)
    title: str | None = Field(None, max_length=30)
    title_of_courtesy: str | None = Field(None, max_length=25)
    birth_date: date | None = None
    hire_date: date | None = None
    address: str | None = Field(None, max_length=60)
    city: str | None = Field(None, max_length=15)
    region: str | None = Field(None, max_length=15)
    postal_code: str | None = Field(None, max_length=10)
    country: str | None = Field(None, max_length=15)
    phone: str | None = Field(None, max_length=24)
    extension: str | None = Field(None, max_length=4)
    mobile: str | None = Field(None, max_length=24)
    email: EmailStr | None = None
    notes: str | None = Field(None, max_length=5000)
    mgr_id: int | None = Field(None, ge=1, le=MAX_ID)
    photo_path: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_hiring_age(self) -> "EmployeeCreate":
        if self.birth_date and self.hire_date:
            if self.hire_date.year - self.birth_date.year < MIN_HIRING_AGE:
                raise ValueError(f"Employee must be at least {MIN_HIRING_AGE} years old when hired")
        return self


class EmployeeUpdate(CamelModel):
    last_name: str | None = Field(None, min_length=1, max_length=20)
    first_name: str | None = Field(None, min_length=1, max_length=10)
    title: str | None = Field(None, max_length=30)
    title_of_courtesy: str | None = Field(None, max_length=25)
    birth_date: date | None = None
    hire_date: date | None = None
    address: str | None = Field(None, max_length=60)
    city: str | None = Field(None, max_length=15)
    region: str | None = Field(None, max_length=15)
    postal_code: str | None = Field(None, max_length=10)
    country: str | None = Field(None, max_length=15)
    phone: str | None = Field(None, max_length=24)
    extension: str | None = Field(None, max_length=4)
    mobile: str | None = Field(None, max_length=24)
    email: EmailStr | None = None
    notes: str | None = Field(None, max_length=5000)
    mgr_id: int | None = Field(None, ge=1, le=MAX_ID)
    photo_path: str | None = Field(None, max_length=255)


class EmployeeRead(CamelModel):
    employee_id: int
    last_name: str
    first_name: str
    title: str | None
    title_of_courtesy: str | None
    birth_date: date | None
    hire_date: date | None
    address: str | None
    city: str | None
    region: str | None
    postal_code: str | None
    country: str | None
    phone: str | None
    extension: str | None
    mobile: str | None
    email: str | None
    notes: str | None
    mgr_id: int | None
    photo_path: str | None


class EmployeeSummary(CamelModel):
    employee_id: int
    first_name: str
    last_name: str
    title: str | None


class TerritoryRead(CamelModel):
    territory_id: str
    territory_description: str
    region_id: int
