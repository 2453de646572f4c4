from marshmallow import Schema, fields, validate, post_load, validates_schema, ValidationError
from availability_service.models import ReservationStatus, ReservationType


STATUS_VALUES = [status.value for status in ReservationStatus]
TYPE_VALUES = [reservation_type.value for reservation_type in ReservationType]
BLOCK_TYPE_VALUES = [t.value for t in ReservationType if t.is_operator_block]


class WindowSchema(Schema):
    """Half-open [start_date, end_date) window"""
    start_date = fields.DateTime(required=True)
    end_date = fields.DateTime(required=True)

    @validates_schema
    def validate_window(self, data, **kwargs):
        start, end = data.get('start_date'), data.get('end_date')
        if start is None or end is None:
            return
        # Mixed naive/aware values are normalized later in the engine
        if (start.tzinfo is None) == (end.tzinfo is None) and end <= start:
            raise ValidationError('end_date must be after start_date', 'end_date')


class AvailabilityQuerySchema(WindowSchema):
    """Query string for availability checks and shortfall explanations"""
    quantity = fields.Int(validate=validate.Range(min=1), load_default=1)
    exclude_reservation_id = fields.Str(validate=validate.Length(min=1), load_default=None)


class AvailabilityBreakdownQuerySchema(Schema):
    range_start = fields.DateTime(required=True)
    range_end = fields.DateTime(required=True)
    granularity_minutes = fields.Int(validate=validate.Range(min=1), load_default=24 * 60)


class ReservationRequestSchema(WindowSchema):
    """Schema for creating reservations"""
    service_id = fields.Str(required=True, validate=validate.Length(min=1, max=36))
    quantity = fields.Int(required=True, validate=validate.Range(min=1))
    type = fields.Str(validate=validate.OneOf(TYPE_VALUES), load_default=ReservationType.BOOKING.value)
    customer_id = fields.Str(validate=validate.Length(max=36), allow_none=True)
    booking_id = fields.Str(validate=validate.Length(max=36), allow_none=True)
    notes = fields.Str(validate=validate.Length(max=500), allow_none=True)
    expires_at = fields.DateTime(allow_none=True)
    confirm = fields.Bool(load_default=False)


class ReservationUpdateSchema(WindowSchema):
    """Schema for rescheduling a reservation"""
    quantity = fields.Int(required=True, validate=validate.Range(min=1))
    notes = fields.Str(validate=validate.Length(max=500), allow_none=True)


class ReservationStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(STATUS_VALUES))
    expected_status = fields.Str(validate=validate.OneOf(STATUS_VALUES), allow_none=True)


class BlockInventoryRequestSchema(WindowSchema):
    """Schema for maintenance windows and manual blocks"""
    quantity = fields.Int(required=True, validate=validate.Range(min=1))
    type = fields.Str(validate=validate.OneOf(BLOCK_TYPE_VALUES),
                      load_default=ReservationType.MAINTENANCE.value)
    reason = fields.Str(validate=validate.Length(max=500), allow_none=True)


class ServiceCapacityRequestSchema(Schema):
    total_quantity = fields.Int(required=True, validate=validate.Range(min=0))
    name = fields.Str(validate=validate.Length(max=200), allow_none=True)


class ReservationListQuerySchema(Schema):
    """Query string for reservation listing"""
    service_id = fields.Str()
    customer_id = fields.Str()
    # Comma separated
    status = fields.Str()
    type = fields.Str()
    start_date_from = fields.DateTime()
    start_date_to = fields.DateTime()
    end_date_from = fields.DateTime()
    end_date_to = fields.DateTime()
    include_expired = fields.Bool(load_default=True)
    page = fields.Int(validate=validate.Range(min=1), load_default=1)
    page_size = fields.Int(validate=validate.Range(min=1), load_default=None)

    @post_load
    def split_lists(self, data, **kwargs):
        for source, target, allowed in (('status', 'statuses', STATUS_VALUES),
                                        ('type', 'types', TYPE_VALUES)):
            raw = data.pop(source, None)
            if not raw:
                continue
            values = [value.strip() for value in raw.split(',') if value.strip()]
            unknown = [value for value in values if value not in allowed]
            if unknown:
                raise ValidationError(f"Unknown value(s): {', '.join(unknown)}", source)
            data[target] = values
        return data
