"""Discount code administration: commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String
from protean.utils.globals import current_domain

from checkout.discount.discount import Discount
from checkout.domain import checkout


@checkout.command(part_of="Discount")
class CreateDiscount:
    code = String(required=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(required=True, max_length=20)
    value = Float(required=True)
    min_subtotal = Float(default=0.0)
    max_discount = Float()
    starts_at = DateTime()
    ends_at = DateTime()
    is_active = Boolean(default=True)


@checkout.command(part_of="Discount")
class DeactivateDiscount:
    code = String(required=True, max_length=50)


@checkout.command_handler(part_of=Discount)
class DiscountHandler:
    @handle(CreateDiscount)
    def create_discount(self, command):
        repo = current_domain.repository_for(Discount)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": ["A discount with this code already exists."]})

        discount = Discount.create(
            code=command.code,
            discount_type=command.discount_type.strip().upper(),
            value=command.value,
            description=command.description,
            min_subtotal=command.min_subtotal or 0.0,
            max_discount=command.max_discount,
            starts_at=command.starts_at,
            ends_at=command.ends_at,
            is_active=command.is_active,
        )
        repo.add(discount)
        return discount.code

    @handle(DeactivateDiscount)
    def deactivate_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get_by_code(command.code)
        discount.deactivate()
        repo.add(discount)
