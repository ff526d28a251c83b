from ..extensions import db


class Currency(db.Model):
    __tablename__ = "currencies"

    currency_code = db.Column(db.String(3), primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)

    def __repr__(self):
        return f"<Currency {self.currency_code}>"
