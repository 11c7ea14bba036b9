from django.contrib import admin
from .models import MaterialRate, MaterialType, Notification, RateParty, SiteLocation, Trip, TripActivity


# --- MASTER DATA ADMINS ---

# 1. Rate Party (Quarries, Customers, Royalty & Transport Owners)
@admin.register(RateParty)
class RatePartyAdmin(admin.ModelAdmin):
    list_display = ('name', 'party_type', 'contact_number', 'gst_number', 'opening_balance')
    list_filter = ('party_type',)
    search_fields = ('name', 'contact_number', 'gst_number')


@admin.register(SiteLocation)
class SiteLocationAdmin(admin.ModelAdmin):
    list_display = ('name', 'address')
    search_fields = ('name',)


@admin.register(MaterialType)
class MaterialTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'description')
    search_fields = ('name',)


# 2. Material Rate
@admin.register(MaterialRate)
class MaterialRateAdmin(admin.ModelAdmin):
    list_display = (
        'rate_party', 'rate_party_type', 'material_type', 'pickup_location', 'drop_off_location',
        'rate_per_ton', 'gst_amount', 'total_rate_per_ton', 'effective_from', 'effective_to',
    )
    list_filter = ('rate_party_type', 'material_type', 'gst_chargeable')
    search_fields = ('rate_party__name', 'material_type__name')
    date_hierarchy = 'effective_from'
    readonly_fields = ('gst_amount', 'total_rate_per_ton')

    fieldsets = (
        ('Party & Route', {
            'fields': ('rate_party_type', 'rate_party', 'material_type', 'pickup_location', 'drop_off_location'),
        }),
        ('Rate', {
            'fields': ('total_km', 'rate_per_km', 'rate_per_ton', 'gst_chargeable', 'gst_percentage',
                       'gst_amount', 'total_rate_per_ton'),
            'description': 'GST amount and total per ton are derived on save.'
        }),
        ('Validity', {
            'fields': ('effective_from', 'effective_to', 'remarks'),
        }),
    )


# --- OPERATIONAL ADMINS ---

class TripActivityInline(admin.TabularInline):
    model = TripActivity
    extra = 0
    can_delete = False
    readonly_fields = ('action', 'message', 'attachments', 'actor_name', 'actor_role', 'created_at')

    def has_add_permission(self, request, obj=None):
        return False


# 3. Trip
@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'date', 'status', 'customer', 'quarry_name', 'material', 'vehicle_number',
        'net_weight', 'revenue', 'profit', 'pending_request_type',
    )
    list_filter = ('status', 'pending_request_type', 'material')
    search_fields = ('customer', 'quarry_name', 'vehicle_number', 'invoice_dc_number', 'created_by')
    date_hierarchy = 'date'
    readonly_fields = (
        'status', 'place', 'revenue', 'material_cost', 'transport_cost', 'royalty_cost', 'profit',
        'created_at', 'updated_at',
    )
    inlines = [TripActivityInline]

    fieldsets = (
        ('Trip', {
            'fields': ('date', 'status', 'pickup_place', 'drop_off_place', 'place', 'material',
                       'invoice_dc_number', 'royalty_number'),
        }),
        ('Parties', {
            'fields': ('customer', 'quarry_name', 'royalty_owner_name', 'transporter_name',
                       'transport_owner_mobile_number', 'vehicle_number'),
        }),
        ('Weights', {
            'fields': ('empty_weight', 'gross_weight', 'net_weight', 'end_empty_weight', 'end_gross_weight',
                       'end_net_weight', 'weight_difference_reason'),
        }),
        ('Money (resolved at entry)', {
            'fields': ('revenue', 'material_cost', 'transport_cost', 'royalty_cost', 'profit',
                       'rate_override_enabled', 'rate_override'),
        }),
        ('Workflow', {
            'fields': ('created_by', 'received_date', 'received_by', 'validated_by', 'validated_at',
                       'validation_comments', 'pending_request_type', 'pending_request_message',
                       'created_at', 'updated_at'),
        }),
    )


# 4. Notification
@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('message', 'type', 'target_role', 'target_user', 'trip_id', 'read', 'timestamp')
    list_filter = ('type', 'target_role', 'read')
    search_fields = ('message', 'requester_name')
