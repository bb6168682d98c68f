# app/api/v1/router.py
from fastapi import APIRouter
from app.modules.auth.router import router as auth_router
from app.modules.profiles.router import router as profiles_router
from app.modules.students.router import router as students_router
from app.modules.classes.router import router as classes_router
from app.modules.enrollments.router import router as enrollments_router
from app.modules.payments.router import router as payments_router
from app.modules.checkout.router import router as checkout_router
from app.modules.billing.router import router as billing_router
from app.modules.webhooks.router import router as webhooks_router

api_router = APIRouter()

api_router.include_router(auth_router,        prefix="/auth",        tags=["auth"])
api_router.include_router(profiles_router,    prefix="/profiles",    tags=["profiles"])
api_router.include_router(students_router,    prefix="/students",    tags=["students"])
api_router.include_router(classes_router,     prefix="/classes",     tags=["classes"])
api_router.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
api_router.include_router(payments_router,    prefix="/payments",    tags=["payments"])
api_router.include_router(checkout_router,    prefix="/checkout",    tags=["checkout"])
api_router.include_router(billing_router,     prefix="/billing",     tags=["Billing/Asaas"])
api_router.include_router(webhooks_router,    prefix="/webhooks",    tags=["webhooks"])
