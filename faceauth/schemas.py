"""
Pydantic models for API request/response schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class EnrollRequest(BaseModel):
    """Schema for enrolling a precomputed descriptor"""
    name: str = Field(..., description="Username to enroll")
    descriptor: List[float] = Field(..., description="Face descriptor (D real numbers)")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "alice",
                "descriptor": [0.1, 0.2, 0.1]
            }
        }


class EnrollResponse(BaseModel):
    """Schema for enrollment response"""
    id: str = Field(..., description="Generated identity UUID")


class VerifyRequest(BaseModel):
    """Schema for verifying a precomputed descriptor"""
    descriptor: List[float] = Field(..., description="Face descriptor (D real numbers)")


class VerifyResponse(BaseModel):
    """Schema for verification response"""
    matched: bool = Field(..., description="Whether an enrolled identity is within the threshold")
    name: Optional[str] = Field(default=None, description="Name of the matched identity")

    class Config:
        json_schema_extra = {
            "example": {
                "matched": True,
                "name": "alice"
            }
        }


class RegisterResponse(BaseModel):
    """Schema for image registration response"""
    id: str = Field(..., description="Generated identity UUID")
    name: str = Field(..., description="Enrolled username")
    message: str = Field(..., description="Status message")


class LoginResponse(BaseModel):
    """Schema for image login response"""
    matched: bool = Field(..., description="Whether the face was recognized")
    name: Optional[str] = Field(default=None, description="Name of the recognized identity")
    message: str = Field(..., description="Status message")


class IdentityRecord(BaseModel):
    """Schema for an enrolled identity (descriptor is not exposed)"""
    id: str = Field(..., description="Identity UUID")
    name: str = Field(..., description="Enrolled username")
    created_at: Optional[datetime] = Field(default=None, description="Enrollment timestamp")


class IdentityList(BaseModel):
    """Schema for listing enrolled identities"""
    total_count: int = Field(..., description="Total number of identities")
    identities: List[IdentityRecord] = Field(..., description="Enrolled identities in store order")


class DeleteResponse(BaseModel):
    """Schema for delete identity response"""
    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Status message")
    deleted_id: Optional[str] = Field(default=None, description="UUID of deleted identity")


class ErrorResponse(BaseModel):
    """Schema for error responses"""
    error: str = Field(..., description="Error type")
    detail: str = Field(..., description="Detailed error message")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "ExtractionFailure",
                "detail": "No face detected in the provided image"
            }
        }
