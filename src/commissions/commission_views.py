"""API views for the commissions module."""
from __future__ import annotations

import logging

from django.http import JsonResponse
from django.utils import timezone
from rest_framework import permissions, status, viewsets
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.permissions import CanEditCommissions, HasWhitelabel, IsAdminOrManager
from commissions.commission_serializers import (
    CloserMetricsSerializer,
    CommissionSettingsSerializer,
    GoalDataSerializer,
    MeetingSerializer,
    OverviewSerializer,
    ProjectionSerializer,
    RankingEntrySerializer,
    SDRMetricsSerializer,
    UserCommissionSerializer,
)
from commissions.formulas import Role, SDRMetrics
from commissions.models import CommissionSettings, UserCommission
from commissions.rankings import DEFAULT_LIMIT
from commissions.services import (
    CommissionService,
    CommissionSettingsNotFound,
    DuplicateCommissionSettings,
    month_bounds,
)
from crm.models import Meeting

logger = logging.getLogger(__name__)

MAX_RANKING_LIMIT = 100


# ────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────

def _resolve_whitelabel(request):
    return getattr(request.user, "whitelabel", None)


def _period_from_query(request):
    """``?month=&year=`` with the current month as default."""
    today = timezone.localdate()
    try:
        month = int(request.query_params.get("month") or today.month)
        year = int(request.query_params.get("year") or today.year)
    except (TypeError, ValueError):
        raise ValidationError({"period": "Mois et annee doivent etre des entiers."})
    if not 1 <= month <= 12:
        raise ValidationError({"month": "Le mois doit etre compris entre 1 et 12."})
    return year, month


def _employees_by_id(service: CommissionService) -> dict:
    return {e.id: e for e in service.repository.list_employees(service.whitelabel_id)}


def _raise_for_settings(exc: Exception):
    if isinstance(exc, CommissionSettingsNotFound):
        raise NotFound("Aucun parametrage de commission pour ce whitelabel.")
    logger.error("Commission settings lookup failed: %s", exc)
    raise ValidationError(
        "Plusieurs parametrages de commission existent pour ce whitelabel. Contactez le support."
    )


class WhitelabelAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated, HasWhitelabel]

    def get_service(self, request) -> CommissionService:
        return CommissionService(str(_resolve_whitelabel(request).pk))

    def get_serializer_context(self, request, **extra):
        return {"request": request, "whitelabel": _resolve_whitelabel(request), **extra}


# ────────────────────────────────────────────────────────────
# Settings
# ────────────────────────────────────────────────────────────

class CommissionSettingsView(WhitelabelAPIView):
    """GET for admins and managers, PUT/PATCH for admins (upsert)."""
    permission_classes = [permissions.IsAuthenticated, HasWhitelabel, CanEditCommissions]

    def get(self, request):
        whitelabel = _resolve_whitelabel(request)
        settings_obj = CommissionSettings.objects.filter(whitelabel=whitelabel).first()
        if settings_obj is None:
            # DRF renders None as an empty body, clients expect a JSON null.
            return JsonResponse(None, safe=False)
        return Response(CommissionSettingsSerializer(settings_obj).data)

    def put(self, request):
        return self._save(request, partial=False)

    def patch(self, request):
        return self._save(request, partial=True)

    def _save(self, request, *, partial: bool):
        whitelabel = _resolve_whitelabel(request)
        instance = CommissionSettings.objects.filter(whitelabel=whitelabel).first()
        serializer = CommissionSettingsSerializer(
            instance,
            data=request.data,
            partial=partial or instance is None,
        )
        serializer.is_valid(raise_exception=True)
        settings_obj = serializer.save(whitelabel=whitelabel)
        logger.info(
            "Commission settings %s whitelabel=%s by=%s",
            "updated" if instance else "created", whitelabel.pk, request.user.pk,
        )
        return Response(
            CommissionSettingsSerializer(settings_obj).data,
            status=status.HTTP_200_OK if instance else status.HTTP_201_CREATED,
        )


# ────────────────────────────────────────────────────────────
# Live reports
# ────────────────────────────────────────────────────────────

class CommissionOverviewView(WhitelabelAPIView):
    permission_classes = [permissions.IsAuthenticated, HasWhitelabel, IsAdminOrManager]

    def get(self, request):
        year, month = _period_from_query(request)
        service = self.get_service(request)
        try:
            report = service.overview(year, month)
        except (CommissionSettingsNotFound, DuplicateCommissionSettings) as exc:
            _raise_for_settings(exc)
        context = self.get_serializer_context(request, employees=_employees_by_id(service))
        data = OverviewSerializer(report, context=context).data
        data["period"] = f"{year}-{month:02d}"
        return Response(data)


class MyCommissionView(WhitelabelAPIView):
    """Live metrics, projection and next checkpoint of the caller."""

    def get(self, request):
        service = self.get_service(request)
        now = timezone.localtime()
        try:
            metrics = service.user_metrics(request.user, now.year, now.month)
            projection = service.projection(request.user, now)
        except (CommissionSettingsNotFound, DuplicateCommissionSettings) as exc:
            _raise_for_settings(exc)
        if metrics is None:
            return Response(
                {"detail": "Aucune commission pour ce role."},
                status=status.HTTP_404_NOT_FOUND,
            )
        context = self.get_serializer_context(request)
        serializer_class = SDRMetricsSerializer if isinstance(metrics, SDRMetrics) else CloserMetricsSerializer
        return Response({
            "metrics": serializer_class(metrics, context=context).data,
            "projection": ProjectionSerializer(projection, context=context).data,
        })


class CommissionGoalsView(WhitelabelAPIView):
    def get(self, request):
        employee_id = request.query_params.get("employee") or None
        try:
            goals = self.get_service(request).goals(employee_id=employee_id)
        except DuplicateCommissionSettings as exc:
            _raise_for_settings(exc)
        return Response({
            "meetings": GoalDataSerializer(goals["meetings"]).data,
            "sales": GoalDataSerializer(goals["sales"]).data,
        })


class _RankingView(WhitelabelAPIView):
    role: Role

    def get(self, request):
        year, month = _period_from_query(request)
        try:
            limit = int(request.query_params.get("limit") or DEFAULT_LIMIT)
        except (TypeError, ValueError):
            raise ValidationError({"limit": "La limite doit etre un entier."})
        limit = max(1, min(limit, MAX_RANKING_LIMIT))
        service = self.get_service(request)
        try:
            entries = service.rankings(self.role, year, month, limit)
        except (CommissionSettingsNotFound, DuplicateCommissionSettings) as exc:
            _raise_for_settings(exc)
        context = self.get_serializer_context(request, employees=_employees_by_id(service))
        return Response(RankingEntrySerializer(entries, many=True, context=context).data)


class SDRRankingView(_RankingView):
    role = Role.SDR


class CloserRankingView(_RankingView):
    role = Role.CLOSER


# ────────────────────────────────────────────────────────────
# Persisted rows & meetings
# ────────────────────────────────────────────────────────────

class UserCommissionViewSet(viewsets.ReadOnlyModelViewSet):
    """Members see their own rows, admins and managers the whole whitelabel."""
    serializer_class = UserCommissionSerializer
    permission_classes = [permissions.IsAuthenticated, HasWhitelabel]
    filterset_fields = ["user", "user_role", "period_month", "period_year", "is_final"]
    ordering_fields = ["period_year", "period_month", "final_commission"]

    def get_queryset(self):
        user = self.request.user
        qs = UserCommission.objects.filter(
            whitelabel_id=user.whitelabel_id,
        ).select_related("user", "whitelabel")
        if not user.can_view_commissions:
            qs = qs.filter(user=user)
        month = self.request.query_params.get("month")
        year = self.request.query_params.get("year")
        if month:
            qs = qs.filter(period_month=month)
        if year:
            qs = qs.filter(period_year=year)
        return qs


class MeetingViewSet(viewsets.ModelViewSet):
    serializer_class = MeetingSerializer
    permission_classes = [permissions.IsAuthenticated, HasWhitelabel]
    filterset_fields = ["sdr", "status", "converted_to_sale"]
    ordering_fields = ["scheduled_at", "completed_at"]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_queryset(self):
        qs = Meeting.objects.filter(whitelabel_id=self.request.user.whitelabel_id)
        month = self.request.query_params.get("month")
        year = self.request.query_params.get("year")
        if month and year:
            try:
                start, end = month_bounds(int(year), int(month))
            except ValueError:
                raise ValidationError({"period": "Periode invalide."})
            qs = qs.filter(scheduled_at__gte=start, scheduled_at__lt=end)
        return qs.order_by("-scheduled_at")

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["whitelabel"] = _resolve_whitelabel(self.request)
        return context

    def perform_create(self, serializer):
        sdr = serializer.validated_data.get("sdr") or self.request.user
        meeting = serializer.save(whitelabel=_resolve_whitelabel(self.request), sdr=sdr)
        logger.info("Meeting created id=%s sdr=%s", meeting.pk, sdr.pk)
