"""Type registry: builds entity types from the schema document."""

from typing import Dict, Iterator, List, Optional

from crudio.config.logging import get_logger
from crudio.generation.constants import JOIN_KEY_FIELD, JOIN_KEY_TYPE
from crudio.generation.errors import SchemaError
from crudio.schema.document import EntitySpec, FieldSpec, RelationshipSpec, SchemaDocument
from .entity_type import EntityType, Field, Relationship, SingularAssignment

logger = get_logger(__name__)


class TypeRegistry:
    """Ordered collection of entity types, looked up by name."""

    def __init__(self):
        self._types: Dict[str, EntityType] = {}

    def __iter__(self) -> Iterator[EntityType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def get(self, name: str, required: bool = True) -> Optional[EntityType]:
        entity_type = self._types.get(name)
        if entity_type is None and required:
            raise SchemaError(f"Entity '{name}' not found")
        return entity_type

    def for_table(self, table_name: str) -> EntityType:
        for entity_type in self._types.values():
            if entity_type.table_name == table_name:
                return entity_type
        raise SchemaError(f"No entity is stored in table '{table_name}'", table=table_name)

    def register(self, entity_type: EntityType) -> EntityType:
        if entity_type.name in self._types:
            raise SchemaError(f"Entity '{entity_type.name}' already exists in model")
        self._types[entity_type.name] = entity_type
        return entity_type

    def relationships(self) -> List[Relationship]:
        return [r for e in self._types.values() for r in e.relationships]

    def concrete(self) -> List[EntityType]:
        """Non-abstract types, plain types first then join types."""
        plain = [e for e in self._types.values() if not e.abstract and not e.is_join]
        joins = [e for e in self._types.values() if e.is_join]
        return plain + joins


def expand_snippets(document: SchemaDocument) -> None:
    """Splice referenced snippets into each entity's fields, then drop the references."""
    for entity_name, entity in document.entities.items():
        for snippet_name in entity.snippets:
            snippet = document.snippets.get(snippet_name)
            if snippet is None:
                raise SchemaError(f"Entity '{entity_name}' references unknown snippet '{snippet_name}'")
            if snippet_name in entity.fields:
                raise SchemaError(
                    f"Snippet '{snippet_name}' collides with a field declared on '{entity_name}'",
                    field=snippet_name,
                )
            entity.fields[snippet_name] = snippet.model_copy()
        entity.snippets = []


def _field_from_spec(field_name: str, spec: FieldSpec) -> Field:
    return Field(
        name=spec.name or field_name,
        field_type=spec.type,
        is_key=spec.key,
        is_unique=spec.unique,
        is_required=spec.required,
        generator=spec.generator,
        default_value=spec.default,
        sensitive=spec.sensitive,
    )


def _relationship_from_spec(entity_name: str, spec: RelationshipSpec) -> Relationship:
    singular = None
    if spec.singular is not None:
        singular = SingularAssignment(
            enumerate=spec.singular.enumerate,
            field=spec.singular.field,
            values=spec.singular.value_list(),
        )
    return Relationship(
        relationship_type=spec.type,
        from_entity=entity_name,
        to_entity=spec.to,
        name=spec.name or "",
        count=spec.count,
        required=spec.required,
        from_column=spec.from_column,
        to_column=spec.to_column,
        default_query=spec.default,
        singular=singular,
    )


def inherit_base_fields(registry: TypeRegistry, base_name: str, target: EntityType) -> None:
    """Copy every field of a registered base type onto the child."""
    base = registry.get(base_name, required=False)
    if base is None:
        raise SchemaError(
            f"Entity '{target.name}' inherits from unknown entity '{base_name}'",
            table=target.table_name,
        )
    for base_field in base.fields:
        if target.field(base_field.name) is not None:
            raise SchemaError(
                f"child '{target.name}' can not redeclare field '{base_field.name}' inherited from '{base.name}'",
                table=target.table_name,
                field=base_field.name,
            )
        target.fields.append(base_field.copy())


def create_entity_type(registry: TypeRegistry, name: str, spec: EntitySpec) -> EntityType:
    """Register one entity type, resolving inheritance before its own fields."""
    if spec.count == 0:
        raise SchemaError(f"Entity '{name}' has a row count of zero")

    entity_type = registry.register(
        EntityType(
            name=name,
            table_name=spec.table or "",
            abstract=spec.abstract,
            row_count=spec.count,
        )
    )

    for base_name in spec.base_names():
        inherit_base_fields(registry, base_name, entity_type)

    for field_name, field_spec in spec.fields.items():
        new_field = _field_from_spec(field_name, field_spec)
        if entity_type.field(new_field.name) is not None and spec.inherits:
            raise SchemaError(
                f"child '{name}' can not redeclare inherited field '{new_field.name}'",
                table=entity_type.table_name,
                field=new_field.name,
            )
        entity_type.add_field(new_field)

    for rel_spec in spec.relationships:
        entity_type.add_relationship(_relationship_from_spec(name, rel_spec))

    logger.debug(
        f"Registered entity '{name}' (table={entity_type.table_name}, "
        f"fields={len(entity_type.fields)}, relationships={len(entity_type.relationships)})"
    )
    return entity_type


def create_join_types(registry: TypeRegistry) -> None:
    """Synthesise one join entity type per many-to-many relationship."""
    for relationship in [r for r in registry.relationships() if r.relationship_type == "many"]:
        join = EntityType(name=relationship.name, is_join=True, source_relationship=relationship)
        join.add_key(JOIN_KEY_FIELD, JOIN_KEY_TYPE, generator="[uuid]")
        self_join = relationship.from_entity == relationship.to_entity
        for endpoint, suffix in ((relationship.from_entity, "From"), (relationship.to_entity, "To")):
            target_key = registry.get(endpoint).key_field()
            # Person <-> Person needs two distinct pointers: PersonFrom, PersonTo
            column = endpoint + suffix if self_join else endpoint
            join.add_relationship(
                Relationship(
                    relationship_type="one",
                    from_entity=join.name,
                    to_entity=endpoint,
                    name=column,
                    required=True,
                    from_column=column,
                    to_column=target_key.name if target_key else None,
                    pointer=column,
                )
            )
        registry.register(join)
        logger.debug(
            f"Synthesised join entity '{join.name}' for "
            f"{relationship.from_entity} <-> {relationship.to_entity}"
        )


def validate_relationships(registry: TypeRegistry) -> None:
    for relationship in registry.relationships():
        for endpoint in (relationship.from_entity, relationship.to_entity):
            if endpoint not in registry:
                raise SchemaError(
                    f"Relationship '{relationship.name}' references unknown entity '{endpoint}'"
                )
        if relationship.singular is not None and relationship.singular.enumerate not in registry:
            raise SchemaError(
                f"Relationship '{relationship.name}' enumerates unknown entity "
                f"'{relationship.singular.enumerate}'"
            )
        if relationship.default_query is not None:
            relationship.default_target()
        if relationship.to_column is None:
            target_key = registry.get(relationship.to_entity).key_field()
            relationship.to_column = target_key.name if target_key else None


def build_registry(document: SchemaDocument) -> TypeRegistry:
    """
    Build every entity type described by the document.

    Snippets are expanded first, then each entity is registered in document
    order (bases must precede their children), relationships are validated
    and finally one join type is synthesised per many-to-many relationship.

    Args:
        document: Schema document with includes already merged

    Returns:
        Populated TypeRegistry
    """
    expand_snippets(document)

    registry = TypeRegistry()
    for name, spec in document.entities.items():
        create_entity_type(registry, name, spec)

    validate_relationships(registry)
    create_join_types(registry)

    logger.info(
        f"Registered {len(registry)} entity type(s), "
        f"{len([e for e in registry if e.is_join])} join type(s)"
    )
    return registry
