"""DRF Serializers for the commissions module."""
from __future__ import annotations

from decimal import ROUND_HALF_UP

from rest_framework import serializers

from commissions.models import CommissionSettings, UserCommission
from commissions.tiers import checkpoint_label
from core.formatting import format_currency, format_percent
from crm.models import Meeting


def _amount(decimal_places: int = 2, **kwargs):
    return serializers.DecimalField(
        max_digits=18,
        decimal_places=decimal_places,
        rounding=ROUND_HALF_UP,
        read_only=True,
        **kwargs,
    )


class MoneyDisplayMixin:
    """Locale-aware ``*_display`` strings from the whitelabel in context."""

    def _whitelabel(self):
        return self.context.get("whitelabel")

    def _money(self, value) -> str:
        whitelabel = self._whitelabel()
        if whitelabel is None:
            return format_currency(value)
        return format_currency(value, whitelabel.currency, whitelabel.locale)

    def _employee(self, employee_id):
        return (self.context.get("employees") or {}).get(str(employee_id))


# ────────────────────────────────────────────────────────────
# Settings
# ────────────────────────────────────────────────────────────

class CommissionSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = CommissionSettings
        fields = [
            "id", "whitelabel",
            "checkpoint_1_percent", "checkpoint_2_percent", "checkpoint_3_percent",
            "checkpoint_1_commission_percent", "checkpoint_2_commission_percent",
            "checkpoint_3_commission_percent",
            "sdr_meeting_commission", "sdr_meetings_target", "sdr_bonus_closed_meeting",
            "closer_fixed_commission", "closer_per_sale_commission",
            "closer_commission_percent", "closer_sales_target",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "whitelabel", "created_at", "updated_at"]

    def validate(self, attrs):
        def current(name):
            if name in attrs:
                return attrs[name]
            if self.instance is not None:
                return getattr(self.instance, name)
            return CommissionSettings._meta.get_field(name).default

        thresholds = [current(f"checkpoint_{i}_percent") for i in (1, 2, 3)]
        if not (thresholds[0] < thresholds[1] < thresholds[2]):
            raise serializers.ValidationError(
                {"checkpoint_3_percent": "Les checkpoints doivent etre strictement croissants (1 < 2 < 3)."}
            )
        return attrs


# ────────────────────────────────────────────────────────────
# Persisted monthly snapshots
# ────────────────────────────────────────────────────────────

class UserCommissionSerializer(MoneyDisplayMixin, serializers.ModelSerializer):
    user_name = serializers.SerializerMethodField()
    period = serializers.CharField(read_only=True)
    checkpoint_label = serializers.SerializerMethodField()
    final_commission_display = serializers.SerializerMethodField()

    class Meta:
        model = UserCommission
        fields = [
            "id", "user", "user_name", "user_role", "period", "period_month", "period_year",
            "meetings_held", "meetings_converted", "total_sales", "sales_count",
            "base_commission", "checkpoint_tier", "checkpoint_label", "checkpoint_multiplier",
            "target_achievement_percent", "final_commission", "final_commission_display",
            "is_final", "updated_at",
        ]
        read_only_fields = fields

    def get_user_name(self, obj):
        return obj.user.get_full_name() or obj.user.email

    def get_checkpoint_label(self, obj):
        return checkpoint_label(obj.checkpoint_tier)

    def get_final_commission_display(self, obj):
        return format_currency(obj.final_commission, obj.whitelabel.currency, obj.whitelabel.locale)


# ────────────────────────────────────────────────────────────
# Meetings
# ────────────────────────────────────────────────────────────

class MeetingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Meeting
        fields = [
            "id", "sdr", "contact", "deal", "title", "scheduled_at", "completed_at",
            "status", "converted_to_sale", "notes", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {"sdr": {"required": False}}

    def validate(self, attrs):
        whitelabel = self.context.get("whitelabel")
        if whitelabel is None:
            return attrs
        for name in ("sdr", "contact", "deal"):
            related = attrs.get(name)
            if related is not None and related.whitelabel_id != whitelabel.pk:
                raise serializers.ValidationError({name: "Cet element appartient a un autre whitelabel."})
        if attrs.get("status") == Meeting.Status.COMPLETED and not attrs.get("completed_at"):
            if self.instance is None or not self.instance.completed_at:
                attrs["completed_at"] = attrs.get("scheduled_at") or getattr(self.instance, "scheduled_at", None)
        return attrs


# ────────────────────────────────────────────────────────────
# Live reports
# ────────────────────────────────────────────────────────────

class EmployeeCommissionSerializer(MoneyDisplayMixin, serializers.Serializer):
    employee_id = serializers.CharField()
    employee_name = serializers.SerializerMethodField()
    role = serializers.CharField(source="role.value")
    total_sales = _amount()
    sales_count = serializers.IntegerField()
    converted_count = serializers.IntegerField()
    base_commission = _amount()
    bonus = _amount()
    checkpoint_tier = serializers.IntegerField()
    checkpoint_label = serializers.SerializerMethodField()
    checkpoint_multiplier = _amount(decimal_places=4)
    target_achievement_percent = _amount()
    final_commission = _amount()
    final_commission_display = serializers.SerializerMethodField()

    def get_employee_name(self, obj):
        employee = self._employee(obj.employee_id)
        return employee.name if employee else None

    def get_checkpoint_label(self, obj):
        return checkpoint_label(obj.checkpoint_tier)

    def get_final_commission_display(self, obj):
        return self._money(obj.final_commission)


class RoleSummarySerializer(MoneyDisplayMixin, serializers.Serializer):
    role = serializers.CharField(source="role.value")
    total_commissions = _amount()
    total_commissions_display = serializers.SerializerMethodField()
    employee_count = serializers.IntegerField()
    total_sales = _amount()
    sales_count = serializers.IntegerField()
    employees = EmployeeCommissionSerializer(many=True)

    def get_total_commissions_display(self, obj):
        return self._money(obj.total_commissions)


class OverviewSerializer(MoneyDisplayMixin, serializers.Serializer):
    total_commissions = _amount()
    total_commissions_display = serializers.SerializerMethodField()
    sdr_commissions = _amount()
    closer_commissions = _amount()
    sdr_count = serializers.IntegerField()
    closer_count = serializers.IntegerField()
    total_sales = _amount()
    total_sales_display = serializers.SerializerMethodField()
    total_deals = serializers.IntegerField()
    average_achievement_percent = _amount()
    average_achievement_display = serializers.SerializerMethodField()
    sdr = RoleSummarySerializer()
    closer = RoleSummarySerializer()

    def get_total_commissions_display(self, obj):
        return self._money(obj.total_commissions)

    def get_total_sales_display(self, obj):
        return self._money(obj.total_sales)

    def get_average_achievement_display(self, obj):
        return format_percent(obj.average_achievement_percent)


class SDRMetricsSerializer(MoneyDisplayMixin, serializers.Serializer):
    role = serializers.SerializerMethodField()
    user_id = serializers.CharField()
    user_name = serializers.CharField()
    period_month = serializers.IntegerField()
    period_year = serializers.IntegerField()
    meetings_held = serializers.IntegerField()
    meetings_converted = serializers.IntegerField()
    meetings_target = _amount()
    target_achievement_percent = _amount()
    base_commission = _amount()
    bonus_commission = _amount()
    checkpoint_tier = serializers.IntegerField()
    checkpoint_multiplier = _amount(decimal_places=4)
    final_commission = _amount()
    final_commission_display = serializers.SerializerMethodField()

    def get_role(self, obj):
        return "sdr"

    def get_final_commission_display(self, obj):
        return self._money(obj.final_commission)


class CloserMetricsSerializer(MoneyDisplayMixin, serializers.Serializer):
    role = serializers.SerializerMethodField()
    user_id = serializers.CharField()
    user_name = serializers.CharField()
    period_month = serializers.IntegerField()
    period_year = serializers.IntegerField()
    total_sales = _amount()
    total_sales_display = serializers.SerializerMethodField()
    sales_count = serializers.IntegerField()
    sales_target = _amount()
    target_achievement_percent = _amount()
    base_commission = _amount()
    checkpoint_tier = serializers.IntegerField()
    checkpoint_multiplier = _amount(decimal_places=4)
    final_commission = _amount()
    final_commission_display = serializers.SerializerMethodField()

    def get_role(self, obj):
        return "closer"

    def get_total_sales_display(self, obj):
        return self._money(obj.total_sales)

    def get_final_commission_display(self, obj):
        return self._money(obj.final_commission)


class NextCheckpointSerializer(serializers.Serializer):
    next_tier = serializers.IntegerField()
    next_threshold = _amount()
    percentage_needed = _amount()


class ProjectionSerializer(MoneyDisplayMixin, serializers.Serializer):
    achieved = _amount()
    days_elapsed = serializers.IntegerField()
    days_in_month = serializers.IntegerField()
    projected_commission = _amount()
    projected_commission_display = serializers.SerializerMethodField()
    next_checkpoint = NextCheckpointSerializer(allow_null=True)

    def get_projected_commission_display(self, obj):
        return self._money(obj.projected_commission)


class GoalProgressSerializer(serializers.Serializer):
    current = _amount()
    target = _amount()
    percentage = _amount()


class GoalDataSerializer(serializers.Serializer):
    daily = GoalProgressSerializer()
    weekly = GoalProgressSerializer()
    monthly = GoalProgressSerializer()


class RankingEntrySerializer(MoneyDisplayMixin, serializers.Serializer):
    rank = serializers.IntegerField()
    employee_id = serializers.CharField()
    employee_name = serializers.SerializerMethodField()
    avatar_url = serializers.SerializerMethodField()
    count = serializers.IntegerField()
    revenue = _amount()
    revenue_display = serializers.SerializerMethodField()
    goal_target = _amount()
    goal_percentage = _amount()

    def get_employee_name(self, obj):
        employee = self._employee(obj.employee_id)
        return employee.name if employee else None

    def get_avatar_url(self, obj):
        employee = self._employee(obj.employee_id)
        return employee.avatar_url if employee else ""

    def get_revenue_display(self, obj):
        return self._money(obj.revenue)
