from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Type

from flask import Blueprint, abort, current_app, jsonify, request, url_for
from marshmallow import Schema, ValidationError
from sqlalchemy import inspect
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from adventureworks.extensions import db
from adventureworks.utils.filters import FilterSet
from adventureworks.utils.logging_utils import get_logger
from adventureworks.utils.model_utils import base
from adventureworks.utils.paging import clamp_page

# Store errors a client can fix by changing the request
CLIENT_PERSISTENCE_ERRORS = (IntegrityError, DataError)


def _key_converter(column) -> str:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return "string"
    return "int" if python_type is int else "string"


class ApiController:
    """
    Generic CRUD endpoints for one SQLAlchemy model.

    ``key`` names the model's primary-key attribute and
    ``queryable_fields`` is the allow-list for ``/find``. Both are checked
    against the mapper when the controller is built.

    Routes (relative to the blueprint's ``url_prefix``)::

        GET    /list
        GET    /<id>
        GET    /page?number=&size=
        GET    /find?field=value...
        POST   /add
        PUT    /update
        DELETE /delete/<id>
    """

    def __init__(
        self,
        model: Type[Any],
        schema_cls: Type[Schema],
        *,
        key: str,
        queryable_fields: Iterable[str] = (),
        name: Optional[str] = None,
    ) -> None:
        mapper = inspect(model)
        columns = mapper.columns
        if key not in columns:
            raise ValueError(f"{model.__name__} has no column '{key}'")
        # Rows are fetched with session.get, which only knows the identity
        if not columns[key].primary_key or len(mapper.primary_key) != 1:
            raise ValueError(f"'{key}' is not the single primary key of {model.__name__}")
        unknown = [field for field in queryable_fields if field not in columns]
        if unknown:
            raise ValueError(f"{model.__name__} has no columns {unknown}")

        self.model = model
        self.key = key
        self.key_column = columns[key]
        self.queryable_fields = tuple(queryable_fields)
        self.name = name or model.__tablename__
        self.schema = schema_cls()
        self.many_schema = schema_cls(many=True)
        if key not in self.schema.fields:
            raise ValueError(f"{schema_cls.__name__} does not expose '{key}'")

    def key_of(self, instance) -> Any:
        return getattr(instance, self.key)

    # ------------------------------------------------------------------
    # Blueprint wiring
    # ------------------------------------------------------------------
    def blueprint(self, url_prefix: Optional[str] = None) -> Blueprint:
        bp = Blueprint(f"{self.name}_bp", __name__, url_prefix=url_prefix)
        converter = _key_converter(self.key_column)

        bp.add_url_rule("/list", "list", self.get_all, methods=["GET"])
        bp.add_url_rule("/page", "page", self.get_paged, methods=["GET"])
        bp.add_url_rule("/find", "find", self.find, methods=["GET"])
        bp.add_url_rule("/add", "add", self.add, methods=["POST"])
        bp.add_url_rule("/update", "update", self.update, methods=["PUT"])
        bp.add_url_rule(f"/delete/<{converter}:id>", "delete", self.delete, methods=["DELETE"])
        bp.add_url_rule(f"/<{converter}:id>", "get_by_id", self.get_by_id, methods=["GET"])
        return bp

    def _context(self, action: str) -> Dict[str, Any]:
        return {"route": f"{self.name}.{action}", "path": request.path}

    # ------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _invalid(messages):
        return jsonify({"title": "Invalid Data", "error": messages}), 400

    def _persistence_failure(self, exc: SQLAlchemyError, action: str):
        db.session.rollback()
        detail = str(getattr(exc, "orig", None) or exc)
        if isinstance(exc, CLIENT_PERSISTENCE_ERRORS):
            current_app.logger.warning("Rejected %s %s: %s", action, self.model.__name__, detail)
            return jsonify({"title": "SqlException", "error": detail}), 400
        current_app.logger.exception("Error during %s %s", action, self.model.__name__)
        return jsonify({"title": "SqlException", "error": detail}), 500

    @staticmethod
    def _json_body():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError({"_schema": ["Request body must be a JSON object."]})
        return data

    def _not_found(self, id):
        abort(404, description=f"{self.model.__name__} with {self.key}={id} not found")

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------
    def get_all(self):
        """List every row, ordered by key."""
        items = base.list_instances(self.model, detached=True, context=self._context("list"))
        return jsonify(self.many_schema.dump(items)), 200

    def get_by_id(self, id):
        """Get a single row by key."""
        item = base.get_instance(self.model, id, detached=True, context=self._context("get"))
        if item is None:
            self._not_found(id)
        return jsonify(self.schema.dump(item)), 200

    def get_paged(self):
        """One page of rows ordered by key."""
        number, size = clamp_page(
            request.args.get("number", type=int),
            request.args.get("size", type=int),
            default_size=current_app.config.get("PAGE_SIZE_DEFAULT", 10),
            max_size=current_app.config.get("PAGE_SIZE_MAX", 100),
        )
        paged = base.page_instances(self.model, number, size, detached=True, context=self._context("page"))
        return jsonify(paged.to_dict(self.many_schema)), 200

    def find(self):
        """Rows matching every allow-listed ``field=value`` pair of the query string."""
        try:
            filter_set = FilterSet.from_query(request.args, self.queryable_fields, self.schema)
        except ValidationError as err:
            return self._invalid(err.messages)

        if filter_set.rejected:
            get_logger("route").info(
                "find on %s ignored keys %s", self.name, filter_set.rejected
            )
        if filter_set.is_empty:
            return jsonify({"title": "Invalid QueryString Keys", "error": request.args.to_dict()}), 400

        items = base.find_instances(self.model, filter_set, detached=True, context=self._context("find"))
        if not items:
            abort(404, description=f"No {self.model.__name__} matches {dict(filter_set.pairs)}")
        return jsonify(self.many_schema.dump(items)), 200

    # ------------------------------------------------------------------
    # Write endpoints
    # ------------------------------------------------------------------
    def add(self):
        """Insert a new row from the request body."""
        try:
            data = self.schema.load(self._json_body())
        except ValidationError as err:
            return self._invalid(err.messages)

        try:
            item = base.create_instance(self.model, context=self._context("add"), **data)
        except SQLAlchemyError as exc:
            return self._persistence_failure(exc, "add")

        key = self.key_of(item)
        response = jsonify(self.schema.dump(item))
        response.status_code = 201
        response.headers["Location"] = url_for(f"{request.blueprint}.get_by_id", id=key)
        return response

    def update(self):
        """Replace a stored row with the request body; the body carries the key."""
        try:
            payload = self._json_body()
            if payload.get(self.key) is None:
                raise ValidationError({self.key: ["Missing data for required field."]})
            key = self.schema.fields[self.key].deserialize(payload[self.key])
        except ValidationError as err:
            messages = err.messages if isinstance(err.messages, dict) else {self.key: err.messages}
            return self._invalid(messages)

        item = base.get_instance(self.model, key, context=self._context("update"))
        if item is None:
            return self._invalid({self.key: [f"No {self.model.__name__} with {self.key}={key} to update."]})

        # Full replacement: loadable fields left out of the body are cleared
        replacement = {
            name: None
            for name, field in self.schema.load_fields.items()
            if field.allow_none and name != self.key
        }
        replacement.update(payload)
        try:
            data = self.schema.load(replacement)
        except ValidationError as err:
            return self._invalid(err.messages)
        data.pop(self.key, None)

        try:
            base.replace_instance(item, data, context=self._context("update"))
        except SQLAlchemyError as exc:
            return self._persistence_failure(exc, "update")
        return jsonify(self.schema.dump(item)), 200

    def delete(self, id):
        """Delete a row by key."""
        item = base.get_instance(self.model, id, context=self._context("delete"))
        if item is None:
            self._not_found(id)

        try:
            base.delete_instance(self.model, item, context=self._context("delete"))
        except SQLAlchemyError as exc:
            return self._persistence_failure(exc, "delete")
        return jsonify({"message": f"Item with Id: {id} Was Deleted From DB"}), 200
