from marshmallow import EXCLUDE, fields, validate

from adventureworks.extensions import ma
from adventureworks.models.Product import Product


class ProductSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Product
        # Bodies echoed back from GET carry dump-only fields
        unknown = EXCLUDE

    name = ma.auto_field(required=True, validate=validate.Length(min=1, max=50))
    product_number = ma.auto_field(required=True, validate=validate.Length(min=1, max=25))
    list_price = fields.Float(required=True, validate=validate.Range(min=0))
    standard_cost = fields.Float(validate=validate.Range(min=0))
    modified_date = ma.auto_field(dump_only=True)
