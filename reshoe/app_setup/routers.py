"""
Registre central des routers (API v1, admin, health).
- API v1: listings, cart, payments, orders, transactions, reviews
- Admin: modération/utilisateurs, réglages, analytics
- Health: connectivité et réconciliation du règlement
"""
from fastapi import FastAPI
from reshoe.listings import views as listings_views
from reshoe.cart import views as cart_views
from reshoe.payments import views as payments_views
from reshoe.orders import views as orders_views
from reshoe.transactions import views as transactions_views
from reshoe.reviews import views as reviews_views
from reshoe.admin.views import router as admin_router
from reshoe.platform_settings.views import router as settings_router
from reshoe.analytics.views import router as analytics_router
from reshoe.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    - L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    # API v1
    app.include_router(listings_views.router)
    app.include_router(cart_views.router)
    app.include_router(payments_views.router)
    app.include_router(orders_views.router)
    app.include_router(transactions_views.router)
    app.include_router(reviews_views.router)
    # Admin
    app.include_router(admin_router)
    app.include_router(settings_router)
    app.include_router(analytics_router)
    # Health & monitoring
    app.include_router(health_router)
