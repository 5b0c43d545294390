"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from app.api.routes import auth, trips, expenses, budget

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(trips.router)
api_router.include_router(expenses.router)
api_router.include_router(budget.router)
