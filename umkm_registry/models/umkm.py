"""
umkm_registry/models/umkm.py

Purpose: Business profile (UMKM) models

- Stored profile with owner and timestamps
- Create payload (required: name, owner name, type, status)
- Partial update payload
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class UMKMFields(BaseModel):
    """Optional descriptive, production and financial fields."""

    model_config = ConfigDict(extra="ignore")

    nik_pemilik: Optional[str] = Field(default=None, description="Owner's national ID number")
    no_hp: Optional[str] = Field(default=None, description="Contact phone number")
    alamat_usaha: Optional[str] = Field(default=None, description="Business address")
    kategori_usaha: Optional[str] = Field(default=None, description="Business category")
    deskripsi_usaha: Optional[str] = Field(default=None, description="Business description")
    produk: Optional[str] = Field(default=None, description="Main product")

    # Production
    kapasitas_produksi: Optional[float] = None
    satuan_produksi: Optional[str] = None
    periode_operasi: Optional[float] = None
    satuan_periode: Optional[str] = None
    hari_kerja_per_minggu: Optional[int] = Field(default=None, ge=0, le=7)
    total_produksi: Optional[float] = None
    jumlah_karyawan: Optional[int] = Field(default=None, ge=0)

    # Finance
    rab: Optional[float] = Field(default=None, description="Budget plan (RAB)")
    biaya_tetap: Optional[float] = Field(default=None, description="Fixed costs")
    biaya_variabel: Optional[float] = Field(default=None, description="Variable costs")
    modal_awal: Optional[float] = Field(default=None, description="Starting capital")
    target_pendapatan: Optional[float] = Field(default=None, description="Revenue target")

    tanggal_daftar: Optional[str] = Field(default=None, description="Registration date (ISO-8601)")


class UMKMCreate(UMKMFields):
    """Payload for registering a new business profile."""

    nama_usaha: str = Field(..., min_length=1, description="Business name")
    pemilik: str = Field(..., min_length=1, description="Owner name")
    jenis_usaha: str = Field(..., min_length=1, description="Business type")
    status: str = Field(..., min_length=1, description="Free-text status, e.g. 'active'")

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "nama_usaha": "Toko Bunga",
                "pemilik": "Budi",
                "jenis_usaha": "Retail",
                "status": "active"
            }
        }
    )


class UMKMUpdate(UMKMFields):
    """Partial update; only the fields sent are changed."""

    nama_usaha: Optional[str] = Field(default=None, min_length=1)
    pemilik: Optional[str] = Field(default=None, min_length=1)
    jenis_usaha: Optional[str] = Field(default=None, min_length=1)
    status: Optional[str] = Field(default=None, min_length=1)


class UMKM(UMKMCreate):
    """A stored business profile."""

    id: str
    user_id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
