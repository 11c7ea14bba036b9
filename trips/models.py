from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils.translation import gettext_lazy as _
from decimal import Decimal

from .attachments import parse_attachments
from .constants import (
    NotificationType,
    PendingRequest,
    RatePartyType,
    TripStatus,
    UPLOAD_FIELDS,
)
from .rates import RateOverride, derive_gst
from .weights import ZERO


# =========================================================================
# A. MASTER DATA TABLES
# =========================================================================

# --- 1. Rate Party Master (Quarries, Customers, Royalty & Transport Owners) ---
class RateParty(models.Model):
    party_type = models.CharField(
        max_length=20, choices=RatePartyType.choices, verbose_name="Rate Party Type"
    )
    name = models.CharField(max_length=150, verbose_name="Name")
    contact_number = models.CharField(max_length=15, blank=True)
    email = models.EmailField(max_length=100, blank=True)
    address = models.TextField(blank=True)
    gst_number = models.CharField(max_length=15, blank=True, verbose_name="GST Number")
    opening_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        ordering = ('party_type', 'name')
        constraints = [
            models.UniqueConstraint(fields=('party_type', 'name'), name='unique_rate_party_name'),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_party_type_display()})"


# --- 2. Site Location Master ---
class SiteLocation(models.Model):
    name = models.CharField(max_length=150, unique=True)
    address = models.TextField(blank=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return self.name


# --- 3. Material Type Master ---
class MaterialType(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return self.name


# --- 4. Material Rate (time-bounded per-ton rate per party/material/route) ---
class MaterialRate(models.Model):
    rate_party_type = models.CharField(max_length=20, choices=RatePartyType.choices)
    rate_party = models.ForeignKey(RateParty, on_delete=models.PROTECT, related_name='material_rates')
    material_type = models.ForeignKey(MaterialType, on_delete=models.PROTECT, related_name='rates')
    pickup_location = models.ForeignKey(
        SiteLocation, on_delete=models.PROTECT, related_name='pickup_rates', verbose_name="Pick-up Location"
    )
    drop_off_location = models.ForeignKey(
        SiteLocation, on_delete=models.PROTECT, related_name='drop_off_rates', verbose_name="Drop-off Location"
    )

    total_km = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), blank=True)
    rate_per_km = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), blank=True)
    rate_per_ton = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    gst_chargeable = models.BooleanField(default=False, verbose_name="GST Chargeable")
    gst_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'), blank=True, verbose_name="GST %"
    )

    # Calculated Fields
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), editable=False)
    total_rate_per_ton = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'), editable=False
    )

    effective_from = models.DateField()
    effective_to = models.DateField(blank=True, null=True)
    remarks = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ('-effective_from', 'id')

    def clean(self):
        if self.rate_party_id and self.rate_party.party_type != self.rate_party_type:
            raise ValidationError(
                _('The selected rate party is not a %(type)s.'),
                params={'type': self.get_rate_party_type_display()},
            )
        if self.effective_to and self.effective_from and self.effective_to < self.effective_from:
            raise ValidationError(_('"Effective To" cannot be before "Effective From".'))

    def save(self, *args, **kwargs):
        self.gst_amount, self.total_rate_per_ton = derive_gst(
            self.rate_per_ton, self.gst_percentage, self.gst_chargeable
        )
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.rate_party} - {self.material_type}: {self.total_rate_per_ton}/T"


# =========================================================================
# B. CORE OPERATIONAL TABLES
# =========================================================================

def empty_list():
    return []


# --- 5. Trip ---
class Trip(models.Model):
    date = models.DateField()

    # Workflow
    status = models.CharField(max_length=30, choices=TripStatus.choices, default=TripStatus.PENDING_UPLOAD)
    created_by = models.CharField(max_length=150, blank=True, verbose_name="Pick-up Supervisor")
    received_date = models.DateField(blank=True, null=True)
    received_by = models.CharField(max_length=150, blank=True, verbose_name="Drop-off Supervisor")
    received_by_role = models.CharField(max_length=30, blank=True)
    validated_by = models.CharField(max_length=150, blank=True)
    validated_at = models.DateTimeField(blank=True, null=True)
    validation_comments = models.TextField(blank=True)

    pending_request_type = models.CharField(
        max_length=30, choices=PendingRequest.choices, blank=True, null=True
    )
    pending_request_message = models.TextField(blank=True)
    pending_request_by = models.CharField(max_length=150, blank=True)
    pending_request_role = models.CharField(max_length=30, blank=True)
    pending_request_at = models.DateTimeField(blank=True, null=True)

    # Parties & material (one-off = not in master data)
    customer = models.CharField(max_length=150, verbose_name="Vendor & Customer")
    vendor_customer_is_one_off = models.BooleanField(default=False)
    quarry_name = models.CharField(max_length=150, verbose_name="Mine & Quarry")
    mine_quarry_is_one_off = models.BooleanField(default=False)
    royalty_owner_name = models.CharField(max_length=150, blank=True)
    royalty_owner_is_one_off = models.BooleanField(default=False)
    transporter_name = models.CharField(max_length=150, blank=True, verbose_name="Transport & Owner")
    transport_owner_is_one_off = models.BooleanField(default=False)
    transport_owner_mobile_number = models.CharField(max_length=15, blank=True)
    vehicle_number = models.CharField(max_length=20, blank=True)
    vehicle_is_one_off = models.BooleanField(default=False)
    material = models.CharField(max_length=100)
    invoice_dc_number = models.CharField(max_length=50, blank=True, verbose_name="Invoice/DC Number")
    royalty_number = models.CharField(max_length=50, blank=True)

    # Locations (`place` mirrors the pick-up place for older reports)
    pickup_place = models.CharField(max_length=150)
    drop_off_place = models.CharField(max_length=150)
    place = models.CharField(max_length=150, blank=True, editable=False)

    # Weights (tons)
    empty_weight = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    gross_weight = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    net_weight = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    end_empty_weight = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    end_gross_weight = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    end_net_weight = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    weight_difference_reason = models.TextField(blank=True)

    # Calculated Fields (resolved once, at creation)
    revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'), editable=False)
    material_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'), editable=False)
    transport_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'), editable=False)
    royalty_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'), editable=False)
    profit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'), editable=False)

    # Per-trip rate override
    rate_override_enabled = models.BooleanField(default=False)
    rate_override = models.JSONField(blank=True, null=True, encoder=DjangoJSONEncoder)

    # Documents: lists of {name, url}
    eway_bill_upload = models.JSONField(default=empty_list, blank=True, encoder=DjangoJSONEncoder)
    invoice_dc_upload = models.JSONField(default=empty_list, blank=True, encoder=DjangoJSONEncoder)
    wayment_slip_upload = models.JSONField(default=empty_list, blank=True, encoder=DjangoJSONEncoder)
    royalty_upload = models.JSONField(default=empty_list, blank=True, encoder=DjangoJSONEncoder)
    tax_invoice_upload = models.JSONField(default=empty_list, blank=True, encoder=DjangoJSONEncoder)
    end_wayment_slip_upload = models.JSONField(default=empty_list, blank=True, encoder=DjangoJSONEncoder)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-date', '-id')

    @property
    def override(self):
        if not self.rate_override_enabled:
            return None
        return RateOverride.coerce(self.rate_override)

    @property
    def weight_difference(self):
        if self.end_net_weight is None:
            return None
        return (self.net_weight or ZERO) - self.end_net_weight

    def attachments(self, field_name):
        if field_name not in UPLOAD_FIELDS and field_name != 'end_wayment_slip_upload':
            raise ValueError(f"Unknown upload field: {field_name}")
        return parse_attachments(getattr(self, field_name))

    def apply_money(self, money):
        for name, value in money.as_dict().items():
            setattr(self, name, value)

    def save(self, *args, **kwargs):
        # 1. Normalize status spellings at the storage boundary
        self.status = TripStatus.normalize(self.status)

        # 2. Keep the legacy `place` column in step with the pick-up place
        self.place = self.pickup_place

        # 3. Store the override as plain JSON
        if isinstance(self.rate_override, RateOverride):
            self.rate_override = self.rate_override.to_dict()

        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'status', 'place', 'updated_at'}

        super().save(*args, **kwargs)

    def to_dict(self):
        data = {f.name: getattr(self, f.name) for f in self._meta.concrete_fields}
        data['weight_difference'] = self.weight_difference
        return data

    def __str__(self):
        return f"Trip #{self.pk}: {self.pickup_place} to {self.drop_off_place} ({self.status})"


# --- 6. Trip Activity (append-only history) ---
class TripActivity(models.Model):
    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name='activity')
    action = models.CharField(max_length=30)
    message = models.TextField(blank=True)
    attachments = models.JSONField(default=empty_list, blank=True, encoder=DjangoJSONEncoder)
    actor_name = models.CharField(max_length=150)
    actor_role = models.CharField(max_length=30)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-created_at', '-id')
        verbose_name_plural = 'trip activity'

    def delete(self, *args, **kwargs):
        raise ValidationError(_('Trip activity is append-only and cannot be deleted.'))

    def to_dict(self):
        return {
            'id': self.pk,
            'trip_id': self.trip_id,
            'action': self.action,
            'message': self.message,
            'attachments': self.attachments or [],
            'actor_name': self.actor_name,
            'actor_role': self.actor_role,
            'created_at': self.created_at,
        }

    def __str__(self):
        return f"{self.action} on Trip #{self.trip_id} by {self.actor_name}"


# --- 7. Notification ---
class Notification(models.Model):
    message = models.TextField()
    type = models.CharField(max_length=10, choices=NotificationType.choices, default=NotificationType.INFO)
    timestamp = models.DateTimeField(auto_now_add=True)
    read = models.BooleanField(default=False)
    target_role = models.CharField(max_length=30, blank=True, null=True)
    target_user = models.CharField(max_length=150, blank=True, null=True)

    # Plain id: the notice outlives a deleted trip
    trip_id = models.IntegerField(blank=True, null=True)
    request_type = models.CharField(max_length=30, blank=True, null=True)
    requester_name = models.CharField(max_length=150, blank=True)
    requester_role = models.CharField(max_length=30, blank=True)
    request_message = models.TextField(blank=True)
    requester_contact = models.CharField(max_length=30, blank=True)

    class Meta:
        ordering = ('-timestamp', '-id')

    def to_dict(self):
        return {
            'id': self.pk,
            'message': self.message,
            'type': self.type,
            'timestamp': self.timestamp,
            'read': self.read,
            'target_role': self.target_role,
            'target_user': self.target_user,
            'trip_id': self.trip_id,
            'request_type': self.request_type,
            'requester_name': self.requester_name,
            'requester_role': self.requester_role,
            'request_message': self.request_message,
            'requester_contact': self.requester_contact,
        }

    def __str__(self):
        return f"[{self.type}] {self.message[:50]}"
