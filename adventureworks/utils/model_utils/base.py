from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import func, inspect, select
from sqlalchemy.sql import Select

from adventureworks.extensions import db
from adventureworks.utils.filters import FilterSet
from adventureworks.utils.logging_utils import get_logger, log_context
from adventureworks.utils.paging import PagedList

ModelType = TypeVar("ModelType", bound=db.Model)


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _instance_identity(instance: ModelType) -> Optional[str]:
    state = inspect(instance)
    if state.identity:
        return ":".join(str(_serialize_value(part)) for part in state.identity)
    pk = state.mapper.primary_key_from_instance(instance)
    if any(part is not None for part in pk):
        return ":".join(str(_serialize_value(part)) for part in pk)
    return None


def _build_context(model_name: str, action: str, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    built = {"model": model_name, "action": action}
    if context:
        for key, value in context.items():
            built[f"ctx_{key}"] = value
    return built


def _default_order(model_cls: Type[ModelType]) -> List[Any]:
    return list(inspect(model_cls).primary_key)


def _build_select(
    model_cls: Type[ModelType],
    filters: Optional[Sequence[Any]] = None,
    order_by: Optional[Union[Any, Sequence[Any]]] = None,
) -> Select:
    query = select(model_cls)
    if filters:
        query = query.where(*filters)
    if order_by is None:
        order_by = _default_order(model_cls)
    if isinstance(order_by, (list, tuple)):
        query = query.order_by(*order_by)
    else:
        query = query.order_by(order_by)
    return query


def add_instance(
    instance: ModelType,
    commit: bool = True,
    flush: bool = False,
    *,
    context: Optional[Dict[str, Any]] = None,
) -> ModelType:
    """
    Mark an already built instance for insertion and optionally persist it.
    """

    logger = get_logger("model_utils")
    model_name = instance.__class__.__name__
    with log_context(**_build_context(model_name, "create", context)):
        logger.info("Adding %s commit=%s flush=%s", model_name, commit, flush)
        try:
            db.session.add(instance)

            if flush:
                db.session.flush()

            if commit:
                db.session.commit()

            logger.info(
                "Added %s target_id=%s commit=%s",
                model_name,
                _instance_identity(instance),
                commit,
            )
            return instance
        except Exception:
            logger.exception("Failed to add %s", model_name)
            raise


def create_instance(
    model_cls: Type[ModelType],
    commit: bool = True,
    flush: bool = False,
    *,
    context: Optional[Dict[str, Any]] = None,
    **attributes: Any,
) -> ModelType:
    """
    Generic helper to create and optionally persist a new model instance.
    """

    return add_instance(model_cls(**attributes), commit=commit, flush=flush, context=context)


def get_instance(
    model_cls: Type[ModelType],
    instance_id: Any,
    *,
    detached: bool = False,
    context: Optional[Dict[str, Any]] = None,
) -> Optional[ModelType]:
    """
    Fetch a single model instance by primary key.

    With ``detached=True`` the instance is expunged from the session, so later
    changes to it are never written back.
    """

    logger = get_logger("model_utils")
    with log_context(**_build_context(model_cls.__name__, "get", context)):
        logger.info("Fetching %s id=%s", model_cls.__name__, instance_id)
        instance = db.session.get(model_cls, instance_id) if instance_id is not None else None
        if instance is not None and detached:
            db.session.expunge(instance)
        logger.info(
            "Fetched %s id=%s found=%s",
            model_cls.__name__,
            instance_id,
            instance is not None,
        )
        return instance


def list_instances(
    model_cls: Type[ModelType],
    *,
    filters: Optional[Sequence[Any]] = None,
    order_by: Optional[Union[Any, Sequence[Any]]] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    detached: bool = False,
    context: Optional[Dict[str, Any]] = None,
) -> List[ModelType]:
    """
    List model instances subject to optional filters, ordering, and paging.
    Results are ordered by primary key unless ``order_by`` is given.
    """

    logger = get_logger("model_utils")
    filter_desc = [str(f) for f in filters] if filters else []
    with log_context(**_build_context(model_cls.__name__, "list", context)):
        logger.info(
            "Listing %s filters=%s order=%s limit=%s offset=%s",
            model_cls.__name__,
            filter_desc,
            str(order_by),
            limit,
            offset,
        )

        query = _build_select(model_cls, filters, order_by)

        if offset is not None:
            query = query.offset(offset)

        if limit is not None:
            query = query.limit(limit)

        results = list(db.session.execute(query).scalars())
        if detached:
            for instance in results:
                db.session.expunge(instance)
        logger.info("Listed %s count=%s", model_cls.__name__, len(results))
        return results


def count_instances(
    model_cls: Type[ModelType],
    *,
    filters: Optional[Sequence[Any]] = None,
) -> int:
    query = select(func.count()).select_from(model_cls)
    if filters:
        query = query.where(*filters)
    return db.session.execute(query).scalar_one()


def page_instances(
    model_cls: Type[ModelType],
    page_number: int,
    page_size: int,
    *,
    filters: Optional[Sequence[Any]] = None,
    order_by: Optional[Union[Any, Sequence[Any]]] = None,
    detached: bool = False,
    context: Optional[Dict[str, Any]] = None,
) -> PagedList[ModelType]:
    """
    Return one page of instances. Without an explicit ``order_by`` the rows
    are ordered by primary key so consecutive pages never overlap.
    """

    logger = get_logger("model_utils")
    with log_context(**_build_context(model_cls.__name__, "page", context)):
        logger.info("Paging %s number=%s size=%s", model_cls.__name__, page_number, page_size)
        page: PagedList[ModelType] = PagedList(
            _build_select(model_cls, filters, order_by),
            page_number,
            page_size,
        )
        if detached:
            for instance in page.items:
                db.session.expunge(instance)
        logger.info(
            "Paged %s number=%s size=%s returned=%s total=%s",
            model_cls.__name__,
            page_number,
            page_size,
            len(page),
            page.total_count,
        )
        return page


def find_instances(
    model_cls: Type[ModelType],
    filter_set: FilterSet,
    *,
    order_by: Optional[Union[Any, Sequence[Any]]] = None,
    detached: bool = False,
    context: Optional[Dict[str, Any]] = None,
) -> List[ModelType]:
    """
    Run a conjunctive equality search. Every value travels as a bound
    parameter of the generated statement.
    """

    if filter_set.is_empty:
        raise ValueError("find_instances requires at least one filter")
    get_logger("model_utils").info(
        "Finding %s pairs=%s",
        model_cls.__name__,
        [(name, _serialize_value(value)) for name, value in filter_set.pairs],
    )
    return list_instances(
        model_cls,
        filters=filter_set.clauses(model_cls),
        order_by=order_by,
        detached=detached,
        context=context,
    )


def replace_instance(
    instance: ModelType,
    attributes: Mapping[str, Any],
    commit: bool = True,
    flush: bool = False,
    *,
    context: Optional[Dict[str, Any]] = None,
) -> ModelType:
    """
    Overwrite attributes on a persistent instance.  Values of ``None`` are
    written as-is; callers decide which attributes a replacement clears.
    """

    logger = get_logger("model_utils")
    model_name = instance.__class__.__name__
    before = {key: _serialize_value(getattr(instance, key, None)) for key in attributes}
    after = {key: _serialize_value(value) for key, value in attributes.items()}
    with log_context(**_build_context(model_name, "update", context)):
        logger.info(
            "Updating %s target_id=%s before=%s after=%s commit=%s",
            model_name,
            _instance_identity(instance),
            before,
            after,
            commit,
        )
        try:
            for key, value in attributes.items():
                setattr(instance, key, value)

            if flush:
                db.session.flush()

            if commit:
                db.session.commit()

            logger.info("Updated %s target_id=%s commit=%s", model_name, _instance_identity(instance), commit)
            return instance
        except Exception:
            logger.exception("Failed to update %s target_id=%s", model_name, _instance_identity(instance))
            raise


def delete_instance(
    model_cls: Type[ModelType],
    instance_or_id: Union[ModelType, Any],
    commit: bool = True,
    flush: bool = False,
    *,
    context: Optional[Dict[str, Any]] = None,
) -> Optional[ModelType]:
    """
    Delete a model instance by object or identifier. Returns the deleted
    instance, or ``None`` when no row matched.
    """

    logger = get_logger("model_utils")
    identity = None

    with log_context(**_build_context(model_cls.__name__, "delete", context)):
        try:
            if isinstance(instance_or_id, model_cls):
                instance = instance_or_id
            else:
                instance = get_instance(model_cls, instance_or_id, context=context)

            if instance is None:
                logger.warning("Delete skipped for %s; target not found id=%s", model_cls.__name__, instance_or_id)
                return None

            identity = _instance_identity(instance)
            logger.info("Deleting %s target_id=%s", model_cls.__name__, identity)
            db.session.delete(instance)

            if flush:
                db.session.flush()

            if commit:
                db.session.commit()

            logger.info("Deleted %s target_id=%s commit=%s", model_cls.__name__, identity, commit)
            return instance
        except Exception:
            logger.exception("Failed to delete %s target=%s", model_cls.__name__, identity or instance_or_id)
            raise
