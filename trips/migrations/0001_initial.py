from decimal import Decimal

import django.core.serializers.json
import django.db.models.deletion
from django.db import migrations, models

import trips.models


RATE_PARTY_TYPES = [
    ('mine-quarry', 'Mine & Quarry'),
    ('vendor-customer', 'Vendor & Customer'),
    ('royalty-owner', 'Royalty Owner'),
    ('transport-owner', 'Transport & Owner'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='MaterialType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('description', models.CharField(blank=True, max_length=255)),
            ],
            options={
                'ordering': ('name',),
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('message', models.TextField()),
                ('type', models.CharField(choices=[('alert', 'Alert'), ('info', 'Info'), ('success', 'Success')], default='info', max_length=10)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('read', models.BooleanField(default=False)),
                ('target_role', models.CharField(blank=True, max_length=30, null=True)),
                ('target_user', models.CharField(blank=True, max_length=150, null=True)),
                ('trip_id', models.IntegerField(blank=True, null=True)),
                ('request_type', models.CharField(blank=True, max_length=30, null=True)),
                ('requester_name', models.CharField(blank=True, max_length=150)),
                ('requester_role', models.CharField(blank=True, max_length=30)),
                ('request_message', models.TextField(blank=True)),
                ('requester_contact', models.CharField(blank=True, max_length=30)),
            ],
            options={
                'ordering': ('-timestamp', '-id'),
            },
        ),
        migrations.CreateModel(
            name='RateParty',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('party_type', models.CharField(choices=RATE_PARTY_TYPES, max_length=20, verbose_name='Rate Party Type')),
                ('name', models.CharField(max_length=150, verbose_name='Name')),
                ('contact_number', models.CharField(blank=True, max_length=15)),
                ('email', models.EmailField(blank=True, max_length=100)),
                ('address', models.TextField(blank=True)),
                ('gst_number', models.CharField(blank=True, max_length=15, verbose_name='GST Number')),
                ('opening_balance', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
            ],
            options={
                'ordering': ('party_type', 'name'),
            },
        ),
        migrations.CreateModel(
            name='SiteLocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150, unique=True)),
                ('address', models.TextField(blank=True)),
            ],
            options={
                'ordering': ('name',),
            },
        ),
        migrations.CreateModel(
            name='Trip',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('status', models.CharField(choices=[('pending upload', 'Pending Upload'), ('in transit', 'In Transit'), ('pending validation', 'Pending Validation'), ('trip completed', 'Trip Completed')], default='pending upload', max_length=30)),
                ('created_by', models.CharField(blank=True, max_length=150, verbose_name='Pick-up Supervisor')),
                ('received_date', models.DateField(blank=True, null=True)),
                ('received_by', models.CharField(blank=True, max_length=150, verbose_name='Drop-off Supervisor')),
                ('received_by_role', models.CharField(blank=True, max_length=30)),
                ('validated_by', models.CharField(blank=True, max_length=150)),
                ('validated_at', models.DateTimeField(blank=True, null=True)),
                ('validation_comments', models.TextField(blank=True)),
                ('pending_request_type', models.CharField(blank=True, choices=[('update', 'Update Requested'), ('sent-back-pickup', 'Sent Back to Pick-up'), ('sent-back-dropoff', 'Sent Back to Drop-off'), ('delete', 'Delete Requested')], max_length=30, null=True)),
                ('pending_request_message', models.TextField(blank=True)),
                ('pending_request_by', models.CharField(blank=True, max_length=150)),
                ('pending_request_role', models.CharField(blank=True, max_length=30)),
                ('pending_request_at', models.DateTimeField(blank=True, null=True)),
                ('customer', models.CharField(max_length=150, verbose_name='Vendor & Customer')),
                ('vendor_customer_is_one_off', models.BooleanField(default=False)),
                ('quarry_name', models.CharField(max_length=150, verbose_name='Mine & Quarry')),
                ('mine_quarry_is_one_off', models.BooleanField(default=False)),
                ('royalty_owner_name', models.CharField(blank=True, max_length=150)),
                ('royalty_owner_is_one_off', models.BooleanField(default=False)),
                ('transporter_name', models.CharField(blank=True, max_length=150, verbose_name='Transport & Owner')),
                ('transport_owner_is_one_off', models.BooleanField(default=False)),
                ('transport_owner_mobile_number', models.CharField(blank=True, max_length=15)),
                ('vehicle_number', models.CharField(blank=True, max_length=20)),
                ('vehicle_is_one_off', models.BooleanField(default=False)),
                ('material', models.CharField(max_length=100)),
                ('invoice_dc_number', models.CharField(blank=True, max_length=50, verbose_name='Invoice/DC Number')),
                ('royalty_number', models.CharField(blank=True, max_length=50)),
                ('pickup_place', models.CharField(max_length=150)),
                ('drop_off_place', models.CharField(max_length=150)),
                ('place', models.CharField(blank=True, editable=False, max_length=150)),
                ('empty_weight', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('gross_weight', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('net_weight', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('end_empty_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('end_gross_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('end_net_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('weight_difference_reason', models.TextField(blank=True)),
                ('revenue', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=14)),
                ('material_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=14)),
                ('transport_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=14)),
                ('royalty_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=14)),
                ('profit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=14)),
                ('rate_override_enabled', models.BooleanField(default=False)),
                ('rate_override', models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ('eway_bill_upload', models.JSONField(blank=True, default=trips.models.empty_list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('invoice_dc_upload', models.JSONField(blank=True, default=trips.models.empty_list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('wayment_slip_upload', models.JSONField(blank=True, default=trips.models.empty_list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('royalty_upload', models.JSONField(blank=True, default=trips.models.empty_list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('tax_invoice_upload', models.JSONField(blank=True, default=trips.models.empty_list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('end_wayment_slip_upload', models.JSONField(blank=True, default=trips.models.empty_list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ('-date', '-id'),
            },
        ),
        migrations.CreateModel(
            name='TripActivity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=30)),
                ('message', models.TextField(blank=True)),
                ('attachments', models.JSONField(blank=True, default=trips.models.empty_list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('actor_name', models.CharField(max_length=150)),
                ('actor_role', models.CharField(max_length=30)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('trip', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activity', to='trips.trip')),
            ],
            options={
                'verbose_name_plural': 'trip activity',
                'ordering': ('-created_at', '-id'),
            },
        ),
        migrations.CreateModel(
            name='MaterialRate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rate_party_type', models.CharField(choices=RATE_PARTY_TYPES, max_length=20)),
                ('total_km', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('rate_per_km', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('rate_per_ton', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('gst_chargeable', models.BooleanField(default=False, verbose_name='GST Chargeable')),
                ('gst_percentage', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5, verbose_name='GST %')),
                ('gst_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=12)),
                ('total_rate_per_ton', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=12)),
                ('effective_from', models.DateField()),
                ('effective_to', models.DateField(blank=True, null=True)),
                ('remarks', models.CharField(blank=True, max_length=255)),
                ('rate_party', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='material_rates', to='trips.rateparty')),
                ('material_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rates', to='trips.materialtype')),
                ('pickup_location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='pickup_rates', to='trips.sitelocation', verbose_name='Pick-up Location')),
                ('drop_off_location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='drop_off_rates', to='trips.sitelocation', verbose_name='Drop-off Location')),
            ],
            options={
                'ordering': ('-effective_from', 'id'),
            },
        ),
        migrations.AddConstraint(
            model_name='rateparty',
            constraint=models.UniqueConstraint(fields=('party_type', 'name'), name='unique_rate_party_name'),
        ),
    ]
