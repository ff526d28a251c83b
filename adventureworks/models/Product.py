from datetime import datetime, timezone

from ..extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class Product(db.Model):
    __tablename__ = "products"

    product_id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(50), nullable=False, unique=True)
    product_number = db.Column(db.String(25), nullable=False, unique=True)
    color = db.Column(db.String(15), nullable=True)
    category = db.Column(db.String(50), nullable=True, index=True)
    size = db.Column(db.String(5), nullable=True)
    weight = db.Column(db.Float, nullable=True)
    standard_cost = db.Column(db.Float, nullable=False, default=0.0)
    list_price = db.Column(db.Float, nullable=False)

    modified_date = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        db.CheckConstraint("list_price >= 0", name="ck_products_list_price"),
        db.CheckConstraint("standard_cost >= 0", name="ck_products_standard_cost"),
    )

    def __repr__(self):
        return f"<Product {self.product_id} {self.product_number}>"
