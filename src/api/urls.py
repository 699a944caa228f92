"""Main API URL router for /api/v1/."""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from commissions import commission_views as commission_api_views

router = DefaultRouter()
router.register(r'commissions/user-commissions', commission_api_views.UserCommissionViewSet, basename='user-commission')
router.register(r'commissions/meetings', commission_api_views.MeetingViewSet, basename='meeting')


app_name = 'api'
urlpatterns = [
    path('', include(router.urls)),

    # Auth endpoints
    path('auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Commissions
    path('commissions/settings/', commission_api_views.CommissionSettingsView.as_view(), name='commission-settings'),
    path('commissions/overview/', commission_api_views.CommissionOverviewView.as_view(), name='commission-overview'),
    path('commissions/me/', commission_api_views.MyCommissionView.as_view(), name='commission-me'),
    path('commissions/goals/', commission_api_views.CommissionGoalsView.as_view(), name='commission-goals'),

    # Rankings
    path('rankings/sdr/', commission_api_views.SDRRankingView.as_view(), name='ranking-sdr'),
    path('rankings/closer/', commission_api_views.CloserRankingView.as_view(), name='ranking-closer'),
]
