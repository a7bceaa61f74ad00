"""Template parser: builds a Template from a YAML template document."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor, wait
from typing import IO, Any

import yaml

from stg.common.exceptions import TemplateException, TemplateParseError
from stg.common.logging import ILoggable, LogLevel
from stg.parser.context import BuildContext, Label, LabelConnection, location
from stg.parser.document import (
    ConnectionBuffer,
    DocumentError,
    EdgeBuffer,
    LabelBuffer,
    NodeBuffer,
    PropertyBuffer,
    TemplateDocument,
    load_document,
)
from stg.template.restrictions import (
    RestrictionValueError,
    build_restriction,
    find_contradiction,
    parse_data_type,
)
from stg.template.template import Template
from stg.template.types import (
    INF,
    Restriction,
    RestrictionType,
    TemplateConnection,
    TemplateEdge,
    TemplateNode,
    TemplateProperty,
    TypeDescriptor,
)

_RESTRICTION_FIELDS = (
    ("values", RestrictionType.VALUE),
    ("regexps", RestrictionType.REGEXP),
    ("key_values", RestrictionType.KEY_VALUE),
    ("key_regexps", RestrictionType.KEY_REGEXP),
)


def _fail(msg: str) -> TemplateException:
    return TemplateException([TemplateParseError("template", msg)])


class TemplateParser:
    """
    Builds templates in stages, each stage running its entries concurrently.

    Stages are barriers: edges, then labels, then label connections, then
    nodes with their labels attached, then per node the label merge and the
    node's own connections. Errors never stop the build; they are collected
    and raised together once every stage has run.

    Labels don't nest. Containers hold scalars only: arrays don't nest, maps
    don't nest and arrays and maps never contain each other.
    """

    def __init__(
        self, max_workers: int | None = None, logger: ILoggable | None = None
    ) -> None:
        """
        Initialize the parser.

        Args:
            max_workers: Worker threads per stage (None = executor default).
            logger: Optional logger for build progress and warnings.
        """
        self._max_workers = max_workers
        self._logger = logger

    def parse(self, stream: IO[str] | IO[bytes] | str | bytes) -> Template:
        """
        Parse a template document.

        Args:
            stream: Opened template file, or the document itself.

        Returns:
            The resolved template.

        Raises:
            TemplateException: With every template error found.
        """
        if hasattr(stream, "read"):
            try:
                stream = stream.read()
            except OSError as e:
                raise _fail(f"can't read file: {e}") from e

        try:
            document = load_document(stream)
        except (yaml.YAMLError, DocumentError) as e:
            raise _fail(f".yaml parsing error: {e}") from e

        if not document.edges:
            raise _fail("there is no any edge definition")
        if not document.nodes:
            raise _fail("there is no any node definition")
        return self.build(document)

    def build(self, document: TemplateDocument) -> Template:
        """Build a template from an already loaded document."""
        context = BuildContext()
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            self._run_stage(pool, "edges", self._build_edge, context, document.edges)
            self._run_stage(pool, "labels", self._build_label, context, document.labels)
            self._run_stage(
                pool,
                "label connections",
                self._build_label_connections,
                context,
                document.labels,
            )
            self._run_stage(pool, "nodes", self._build_node, context, document.nodes)
            self._run_stage(
                pool, "node connections", self._resolve_node, context, document.nodes
            )

        error = context.build_error()
        if error is not None:
            if self._logger:
                self._logger.log(
                    LogLevel.ERROR, f"Template has {len(error.errors)} error(s)"
                )
            raise error

        if self._logger:
            self._logger.log(LogLevel.DEBUG, f"Template built: {context.counts()}")
        return context.build_template()

    def _run_stage(
        self,
        pool: ThreadPoolExecutor,
        stage: str,
        task: Callable[[BuildContext, str, Any], None],
        context: BuildContext,
        entries: Mapping[str, Any],
    ) -> None:
        if self._logger:
            self._logger.log(
                LogLevel.DEBUG, f"Stage '{stage}': {len(entries)} entries"
            )
        futures = [pool.submit(task, context, name, buf) for name, buf in entries.items()]
        wait(futures)
        # a failed task is a bug, not a template error
        for future in futures:
            future.result()

    # ---------------------------------------------------------------- stages

    def _build_edge(self, context: BuildContext, name: str, buf: EdgeBuffer) -> None:
        edge = TemplateEdge(name)
        for key, prop in buf.properties.items():
            edge.properties[key] = self._build_property(context, ("edges", name), key, prop)
        context.set_edge(edge)

    def _build_label(self, context: BuildContext, name: str, buf: LabelBuffer) -> None:
        label = Label(name)
        for key, prop in buf.properties.items():
            label.properties[key] = self._build_property(
                context, ("labels", name), key, prop
            )
        context.set_label(label)

    def _build_label_connections(
        self, context: BuildContext, name: str, buf: LabelBuffer
    ) -> None:
        for subject, entries in buf.connections.items():
            for i, conn in enumerate(entries, 1):
                self._build_connection(context, "labels", name, subject, i, conn)

    def _build_node(self, context: BuildContext, name: str, buf: NodeBuffer) -> None:
        node = TemplateNode(name)
        for key, prop in buf.properties.items():
            node.properties[key] = self._build_property(context, ("nodes", name), key, prop)
        context.set_node(node)

        for i, label in enumerate(buf.labels, 1):
            if context.label(label) is None:
                context.append_error(
                    location("nodes", name, "labels", str(i)),
                    f"\"{name}\" node has undefined label \"{label}\" "
                    "to attach it to node type",
                )
            else:
                context.attach_label(name, label)

    def _resolve_node(self, context: BuildContext, name: str, buf: NodeBuffer) -> None:
        node = context.node(name)
        for label_name in context.node_labels(name):
            label = context.label(label_name)
            for prop in label.properties.values():
                context.set_missing_property(name, prop)
            for conn in context.label_connections(label_name):
                for subject in context.label_nodes(conn.subject):
                    context.set_missing_node_connection(
                        TemplateConnection(
                            node, conn.edge, subject, conn.min, conn.max, label=label_name
                        )
                    )

        for subject, entries in buf.connections.items():
            for i, conn in enumerate(entries, 1):
                self._build_connection(context, "nodes", name, subject, i, conn)

    # ------------------------------------------------------------ properties

    def _build_property(
        self,
        context: BuildContext,
        owner: tuple[str, str],
        key: str,
        buf: PropertyBuffer,
    ) -> TemplateProperty:
        path = owner + ("properties", key)
        try:
            descriptor = parse_data_type(buf.type)
        except RestrictionValueError as e:
            context.append_error(location(*path, "type"), str(e))
            descriptor = TypeDescriptor()

        prop = TemplateProperty(
            key, descriptor.type, descriptor.value_type, descriptor.key_type
        )
        for field_name, kind in _RESTRICTION_FIELDS:
            for i, raw in enumerate(getattr(buf.restrictions, field_name), 1):
                try:
                    restriction = build_restriction(descriptor, kind, raw)
                except RestrictionValueError as e:
                    context.append_error(
                        location(*path, "restrictions", field_name, str(i)), str(e)
                    )
                    continue
                if kind.is_key:
                    prop.key_restrictions.append(restriction)
                else:
                    prop.value_restrictions.append(restriction)

        self._warn_contradictions(path, prop.value_restrictions)
        self._warn_contradictions(path, prop.key_restrictions)
        return prop

    def _warn_contradictions(
        self, path: tuple[str, ...], restrictions: list[Restriction]
    ) -> None:
        if not self._logger:
            return
        for restr in restrictions:
            if not restr.kind.is_regexp:
                continue
            contradiction = find_contradiction(restr, restrictions)
            if contradiction is not None:
                self._logger.log(
                    LogLevel.WARNING,
                    f"{location(*path, 'restrictions')} >> {contradiction.kind} "
                    f"restriction \"{contradiction.raw}\" can never match "
                    f"{restr.kind} restriction \"{restr.raw}\"",
                )

    # ----------------------------------------------------------- connections

    def _build_connection(
        self,
        context: BuildContext,
        section: str,
        main: str,
        subject: str,
        index: int,
        buf: ConnectionBuffer,
    ) -> None:
        """
        Build one connection declared by a label or a node.

        A failing connection is not inserted. A node connection replaces one
        expanded from a label for the same triple, but not one declared by
        the node itself.
        """
        kind = "node" if section == "nodes" else "label"
        loc = location(section, main, "connections", subject, str(index))

        if section == "nodes":
            main_entity, subject_entity = context.node(main), context.node(subject)
            existing = context.node_connection(main, subject, buf.edge)
            duplicate = existing is not None and existing.label is None
        else:
            main_entity, subject_entity = context.label(main), context.label(subject)
            duplicate = context.label_connection(main, subject, buf.edge) is not None
        edge = context.edge(buf.edge)

        failed = False
        if subject_entity is None:
            failed = True
            context.append_error(
                loc,
                f"{kind} \"{main}\" has undefined subject {kind} \"{subject}\" "
                "to create connection",
            )
        if edge is None:
            failed = True
            context.append_error(
                loc,
                f"{kind} \"{main}\" has undefined edge \"{buf.edge}\" "
                "to create connection",
            )
        if duplicate:
            failed = True
            context.append_error(
                loc,
                f"{kind}-connection with \"{main}\" main, \"{buf.edge}\" edge "
                f"and \"{subject}\" subject already exists",
            )
        if buf.min < 0:
            failed = True
            context.append_error(
                location(section, main, "connections", subject, str(index), "ratio", "min"),
                "\"min\" can't be less than 0",
            )
        if buf.max == 0 or buf.max < INF:
            failed = True
            context.append_error(
                location(section, main, "connections", subject, str(index), "ratio", "max"),
                "\"max\" can't be equal to 0 or be less than -1 "
                "(-1 is considered as positive infinity)",
            )
        if failed:
            return

        if section == "nodes":
            context.set_node_connection(
                TemplateConnection(main_entity, edge, subject_entity, buf.min, buf.max)
            )
        else:
            context.set_label_connection(
                LabelConnection(main, edge, subject, buf.min, buf.max)
            )


def parse_template(
    stream: IO[str] | IO[bytes] | str | bytes,
    max_workers: int | None = None,
    logger: ILoggable | None = None,
) -> Template:
    """Parse a template document; see TemplateParser.parse."""
    return TemplateParser(max_workers=max_workers, logger=logger).parse(stream)
