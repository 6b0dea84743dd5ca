"""Authentication schemas."""
import re
from datetime import date
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from vaultbank.models.user import calculate_age
from vaultbank.schemas.account import AccountResponse

NAME_PATTERN = r"^[A-Za-z ]+$"

EmploymentStatus = Literal["employed", "self-employed", "unemployed", "retired", "student"]
AnnualIncome = Literal["under-25k", "25k-50k", "50k-75k", "75k-100k", "100k-150k", "over-150k"]
SourceOfFunds = Literal["employment", "business", "investments", "inheritance", "other"]


def check_password_strength(value: str) -> str:
    if not re.search(r"[a-z]", value) or not re.search(r"[A-Z]", value) or not re.search(r"\d", value):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase letter, and one number"
        )
    return value


class UserSignup(BaseModel):
    """Full account-opening form."""

    first_name: str = Field(..., min_length=2, max_length=50, pattern=NAME_PATTERN)
    last_name: str = Field(..., min_length=2, max_length=50, pattern=NAME_PATTERN)
    email: EmailStr
    date_of_birth: date
    phone: str = Field(..., pattern=r"^\(\d{3}\) \d{3}-\d{4}$")
    ssn: str = Field(..., pattern=r"^\d{3}-\d{2}-\d{4}$")

    address1: str = Field(..., min_length=5, max_length=100)
    address2: str | None = Field(None, max_length=100)
    city: str = Field(..., min_length=2, max_length=50, pattern=NAME_PATTERN)
    state: str = Field(..., pattern=r"^[A-Z]{2}$")
    zip: str = Field(..., pattern=r"^\d{5}(-\d{4})?$")

    employment_status: EmploymentStatus
    employer: str | None = Field(None, max_length=100)
    occupation: str | None = Field(None, max_length=100)
    annual_income: AnnualIncome
    source_of_funds: SourceOfFunds

    username: str = Field(..., min_length=6, max_length=20, pattern=r"^[A-Za-z0-9]+$")
    password: str = Field(..., min_length=8)
    confirm_password: str
    terms_agreement: bool
    electronic_consent: bool

    @field_validator("date_of_birth")
    @classmethod
    def validate_adult(cls, value: date) -> date:
        if calculate_age(value) < 18:
            raise ValueError("You must be at least 18 years old to open an account")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)

    @model_validator(mode="after")
    def validate_form(self) -> "UserSignup":
        if self.password != self.confirm_password:
            raise ValueError("Password confirmation does not match password")
        if not self.terms_agreement:
            raise ValueError("You must agree to the terms and conditions")
        if not self.electronic_consent:
            raise ValueError("You must consent to electronic communications")
        if self.employment_status in ("employed", "self-employed"):
            for field_name in ("employer", "occupation"):
                value = getattr(self, field_name)
                if not value or len(value.strip()) < 2:
                    raise ValueError(f"{field_name.capitalize()} is required when employed")
        return self


class UserLogin(BaseModel):
    """User login request."""

    username: str = Field(..., min_length=1)  # Can be username or email
    password: str = Field(..., min_length=6)


class UserResponse(BaseModel):
    """User info response."""

    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    age: int
    full_address: str
    is_active: bool
    is_email_verified: bool
    last_login: str | None = None
    created_at: str

    class Config:
        from_attributes = True


class SignupResponse(BaseModel):
    """Created user plus their default accounts."""

    message: str
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    accounts: list[AccountResponse]


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class LockStatusResponse(BaseModel):
    is_locked: bool
    login_attempts: int
    lock_until: str | None
    remaining_seconds: int


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
