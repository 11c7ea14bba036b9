from django.db import models


# --- TRIP STATUS ---
class TripStatus(models.TextChoices):
    PENDING_UPLOAD = 'pending upload', 'Pending Upload'
    IN_TRANSIT = 'in transit', 'In Transit'
    PENDING_VALIDATION = 'pending validation', 'Pending Validation'
    COMPLETED = 'trip completed', 'Trip Completed'

    @classmethod
    def normalize(cls, value):
        """
        Maps stored or submitted status strings onto the closed set of statuses.
        'completed' and 'validated' are legacy spellings of the terminal state.
        """
        if isinstance(value, cls):
            return value
        key = str(value or '').strip().lower()
        key = STATUS_SYNONYMS.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown trip status: {value!r}")


STATUS_SYNONYMS = {
    'completed': TripStatus.COMPLETED.value,
    'validated': TripStatus.COMPLETED.value,
}


# --- ROLES ---
class Role(models.TextChoices):
    ADMIN = 'ADMIN', 'Admin'
    MANAGER = 'MANAGER', 'Manager'
    ACCOUNTANT = 'ACCOUNTANT', 'Accountant'
    PICKUP_SUPERVISOR = 'PICKUP_SUPERVISOR', 'Pick-up Supervisor'
    DROPOFF_SUPERVISOR = 'DROPOFF_SUPERVISOR', 'Drop-off Supervisor'
    GUEST = 'GUEST', 'Guest'


PRIVILEGED_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.ACCOUNTANT})
SUPERVISOR_ROLES = frozenset({Role.PICKUP_SUPERVISOR, Role.DROPOFF_SUPERVISOR})


# --- RATE PARTIES ---
class RatePartyType(models.TextChoices):
    MINE_QUARRY = 'mine-quarry', 'Mine & Quarry'
    VENDOR_CUSTOMER = 'vendor-customer', 'Vendor & Customer'
    ROYALTY_OWNER = 'royalty-owner', 'Royalty Owner'
    TRANSPORT_OWNER = 'transport-owner', 'Transport & Owner'


# Trip attribute holding the counterparty name for each rate-party type
PARTY_NAME_FIELDS = {
    RatePartyType.VENDOR_CUSTOMER: 'customer',
    RatePartyType.MINE_QUARRY: 'quarry_name',
    RatePartyType.TRANSPORT_OWNER: 'transporter_name',
    RatePartyType.ROYALTY_OWNER: 'royalty_owner_name',
}


# --- PENDING REQUESTS & NOTIFICATIONS ---
class PendingRequest(models.TextChoices):
    UPDATE = 'update', 'Update Requested'
    SENT_BACK_PICKUP = 'sent-back-pickup', 'Sent Back to Pick-up'
    SENT_BACK_DROPOFF = 'sent-back-dropoff', 'Sent Back to Drop-off'
    DELETE = 'delete', 'Delete Requested'


class NotificationType(models.TextChoices):
    ALERT = 'alert', 'Alert'
    INFO = 'info', 'Info'
    SUCCESS = 'success', 'Success'


class TripAction(models.TextChoices):
    UPLOAD = 'upload', 'Upload Documents'
    RECEIVE = 'receive', 'Receive'
    VALIDATE = 'validate', 'Validate'
    SEND_BACK_PICKUP = 'send_back_pickup', 'Send Back to Pick-up'
    SEND_BACK_DROPOFF = 'send_back_dropoff', 'Send Back to Drop-off'
    REQUEST_UPDATE = 'request_update', 'Request Update'
    REQUEST_DELETE = 'request_delete', 'Request Delete'
    RAISE_ISSUE = 'raise_issue', 'Raise Issue'
    DELETE = 'delete', 'Delete'
    REPLY = 'reply', 'Reply'


# Document slots filled by the pick-up supervisor's upload
UPLOAD_FIELDS = (
    'eway_bill_upload',
    'invoice_dc_upload',
    'wayment_slip_upload',
    'royalty_upload',
    'tax_invoice_upload',
)
