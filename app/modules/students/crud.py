# app/modules/students/crud.py
import uuid

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from .models import Student

async def get_student(db: AsyncSession, student_id: uuid.UUID) -> Student | None:
    res = await db.execute(select(Student).where(Student.id == student_id))
    return res.scalar_one_or_none()

async def get_student_or_404(db: AsyncSession, student_id: uuid.UUID) -> Student:
    student = await get_student(db, student_id)
    if not student:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Aluno {student_id} não encontrado."
        )
    return student
