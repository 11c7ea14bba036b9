import json

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.utils import timezone

from .attachments import parse_attachments
from .constants import RatePartyType, UPLOAD_FIELDS
from .models import MaterialRate, RateParty, Trip
from .rates import OVERRIDE_REQUIRED_FIELDS, OVERRIDE_WIRE_KEYS, RateOverride
from .weights import ZERO, NetWeightTracker, to_decimal


class AttachmentListField(forms.Field):
    """A list of {name, url} files, given as a list or as its JSON string."""

    def to_python(self, value):
        try:
            return parse_attachments(value)
        except ValueError as exc:
            raise ValidationError(str(exc), code='invalid')


# ----------------------------------------------------------------------
# 1. Trip Entry / Edit Forms
# ----------------------------------------------------------------------
TRIP_FIELDS = [
    'date', 'pickup_place', 'drop_off_place',
    'customer', 'vendor_customer_is_one_off',
    'quarry_name', 'mine_quarry_is_one_off',
    'royalty_owner_name', 'royalty_owner_is_one_off',
    'transporter_name', 'transport_owner_is_one_off', 'transport_owner_mobile_number',
    'vehicle_number', 'vehicle_is_one_off',
    'material', 'invoice_dc_number', 'royalty_number',
    'empty_weight', 'gross_weight', 'net_weight',
]


class TripForm(forms.ModelForm):
    date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}))

    # Set once the user types a net weight directly; gross/empty then stop driving it
    net_weight_manual = forms.BooleanField(required=False)

    class Meta:
        model = Trip
        fields = TRIP_FIELDS

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name in ('empty_weight', 'gross_weight', 'net_weight'):
            self.fields[name].required = False
            self.fields[name].validators.append(MinValueValidator(0))

    def clean(self):
        cleaned_data = super().clean()
        gross = cleaned_data.get('gross_weight')
        empty = cleaned_data.get('empty_weight')
        net = cleaned_data.get('net_weight')

        if cleaned_data.get('net_weight_manual') or not gross:
            # Net weight as typed; a bare net weight also stands in for gross
            tracker = NetWeightTracker(gross or net, empty, net=net, manual=True)
        else:
            tracker = NetWeightTracker(gross, empty)

        cleaned_data['gross_weight'] = tracker.gross
        cleaned_data['empty_weight'] = tracker.empty
        cleaned_data['net_weight'] = tracker.net

        if tracker.net <= ZERO and 'net_weight' not in self.errors:
            self.add_error('net_weight', "Net weight must be greater than zero.")
        return cleaned_data

    @classmethod
    def for_instance(cls, trip, data):
        """Edit form seeded with the stored trip so partial payloads validate."""
        initial = {name: getattr(trip, name) for name in TRIP_FIELDS}
        initial['net_weight_manual'] = not ({'gross_weight', 'empty_weight'} & set(data))
        initial.update(data.items())
        return cls(initial, instance=trip)


class RateOverrideForm(forms.Form):
    rate_party_type = forms.ChoiceField(choices=RatePartyType.choices, initial=RatePartyType.TRANSPORT_OWNER)
    material_type_id = forms.CharField()
    rate_party_id = forms.CharField()
    pickup_location_id = forms.CharField()
    drop_off_location_id = forms.CharField()
    total_km = forms.DecimalField(required=False, min_value=0)
    rate_per_km = forms.DecimalField(required=False, min_value=0)
    rate_per_ton = forms.DecimalField(required=False, min_value=0)
    gst_chargeable = forms.BooleanField(required=False)
    gst_percentage = forms.DecimalField(required=False, min_value=0, max_value=100)
    effective_from = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    effective_to = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    remarks = forms.CharField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        start, end = cleaned_data.get('effective_from'), cleaned_data.get('effective_to')
        if start and end and end < start:
            self.add_error('effective_to', '"Effective To" cannot be before "Effective From".')
        return cleaned_data

    def to_override(self):
        data = self.cleaned_data
        override = RateOverride(
            rate_party_type=RatePartyType(data['rate_party_type']),
            material_type_id=data['material_type_id'],
            rate_party_id=data['rate_party_id'],
            pickup_location_id=data['pickup_location_id'],
            drop_off_location_id=data['drop_off_location_id'],
            total_km=to_decimal(data.get('total_km')),
            rate_per_km=to_decimal(data.get('rate_per_km')),
            rate_per_ton=to_decimal(data.get('rate_per_ton')),
            gst_chargeable=bool(data.get('gst_chargeable')),
            gst_percentage=to_decimal(data.get('gst_percentage')),
            effective_from=data.get('effective_from'),
            effective_to=data.get('effective_to'),
            remarks=data.get('remarks') or '',
        )
        return override.recompute()


def override_form_data(value):
    """Snake_case form data from an override given as a dict, JSON string or RateOverride."""
    if isinstance(value, RateOverride):
        return value.to_dict()
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else {}
        except ValueError:
            return {}
    if not isinstance(value, dict):
        return {}
    data = {}
    for name, wire_key in OVERRIDE_WIRE_KEYS.items():
        if name in value:
            data[name] = value[name]
        elif wire_key in value:
            data[name] = value[wire_key]
    data.setdefault('rate_party_type', RatePartyType.TRANSPORT_OWNER.value)
    return data


class TripEntryForm(TripForm):
    """New trip: the trip fields plus an optional per-trip rate override."""
    rate_override_enabled = forms.BooleanField(required=False)

    class Meta(TripForm.Meta):
        fields = TRIP_FIELDS + ['rate_override_enabled']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.is_bound:
            self.override_form = RateOverrideForm(data=override_form_data(self.data.get('rate_override')))
        else:
            self.override_form = RateOverrideForm()
        self.override = None

    def clean(self):
        cleaned_data = super().clean()
        if not cleaned_data.get('rate_override_enabled'):
            return cleaned_data

        if not self.override_form.is_valid():
            required = set(OVERRIDE_REQUIRED_FIELDS)
            if required & set(self.override_form.errors):
                self.add_error(None, "Please complete the required rate fields.")
            for name, errors in self.override_form.errors.items():
                if name not in required:
                    self.add_error(None, f"Rate override {name}: {' '.join(errors)}")
            return cleaned_data

        self.override = self.override_form.to_override()
        if self.override.effective_from is None:
            self.override.effective_from = cleaned_data.get('date')
        return cleaned_data

    def save(self, commit=True):
        trip = super().save(commit=False)
        trip.rate_override = self.override.to_dict() if self.override else None
        if commit:
            trip.save()
        return trip


# ----------------------------------------------------------------------
# 2. Workflow Action Forms
# ----------------------------------------------------------------------
class UploadDocumentsForm(forms.Form):
    eway_bill_upload = AttachmentListField(required=False, label="E-way Bill")
    invoice_dc_upload = AttachmentListField(required=False, label="Invoice / DC")
    wayment_slip_upload = AttachmentListField(required=False, label="Wayment Slip")
    royalty_upload = AttachmentListField(required=False, label="Royalty Slip")
    tax_invoice_upload = AttachmentListField(required=False, label="Tax Invoice")

    def documents(self):
        """Only the slots present in the submission; absent slots keep their files."""
        return {name: self.cleaned_data[name] for name in UPLOAD_FIELDS if name in self.data}


class ReceiveTripForm(forms.Form):
    received_date = forms.DateField(
        initial=timezone.localdate,
        required=False,
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
    )
    end_empty_weight = forms.DecimalField(required=False, min_value=0, max_digits=12, decimal_places=2)
    end_gross_weight = forms.DecimalField(required=False, min_value=0, max_digits=12, decimal_places=2)
    end_wayment_slip_upload = AttachmentListField(required=False, label="End Wayment Slip")
    weight_difference_reason = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))

    def clean_received_date(self):
        return self.cleaned_data.get('received_date') or timezone.localdate()


class RequestMessageForm(forms.Form):
    """Free-text reason/comment attached to a workflow action."""
    message = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))
    attachments = AttachmentListField(required=False)


class ReplyForm(RequestMessageForm):
    message = forms.CharField(widget=forms.Textarea(attrs={'rows': 2}))


# ----------------------------------------------------------------------
# 3. Material Rate Form
# ----------------------------------------------------------------------
class MaterialRateForm(forms.ModelForm):
    rate_party = forms.ModelChoiceField(queryset=RateParty.objects.all(), empty_label="Select Rate Party")

    class Meta:
        model = MaterialRate
        fields = [
            'rate_party_type', 'rate_party', 'material_type', 'pickup_location', 'drop_off_location',
            'total_km', 'rate_per_km', 'rate_per_ton', 'gst_chargeable', 'gst_percentage',
            'effective_from', 'effective_to', 'remarks',
        ]
        widgets = {
            'effective_from': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
            'effective_to': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
        }
