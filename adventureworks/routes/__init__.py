from flask import Flask, jsonify

from adventureworks.controllers import ApiController
from adventureworks.models import Currency, Product
from adventureworks.schemas import CurrencySchema, ProductSchema

product_controller = ApiController(
    Product,
    ProductSchema,
    key="product_id",
    queryable_fields=["name", "product_number", "color", "category", "size", "list_price"],
)

currency_controller = ApiController(
    Currency,
    CurrencySchema,
    key="currency_code",
    queryable_fields=["name"],
)

CONTROLLERS = {
    "products": product_controller,
    "currencies": currency_controller,
}


def register_blueprints(app: Flask) -> None:
    prefix = app.config.get("API_PREFIX", "/api").rstrip("/")

    for path, controller in CONTROLLERS.items():
        app.register_blueprint(controller.blueprint(), url_prefix=f"{prefix}/{path}")

    @app.route(f"{prefix}/health")
    def health():
        return jsonify({"status": "ok"})
