from marshmallow import validate

from adventureworks.extensions import ma
from adventureworks.models.Currency import Currency


class CurrencySchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Currency

    currency_code = ma.auto_field(required=True, validate=validate.Length(equal=3))
    name = ma.auto_field(required=True, validate=validate.Length(min=1, max=50))
