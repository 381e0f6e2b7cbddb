"""
Template store: create, list, copy and delete named target schemas.

The store is handed its persistence backend explicitly, so callers (and
tests) decide where templates live. Every template is validated against
the bundled template.json schema before it is written.
"""

import logging
import uuid
from typing import List, Optional

from ..errors import EmptyInputError, InvalidTemplateError, RecordNotFoundError
from ..table import Table
from ..template import Template, TemplateColumn
from ..utils.file_utils import parse_text, serialize_table
from ..utils.schema_utils import validate_config
from .backends import StorageBackend

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"


def validate_template(template: Template) -> None:
    """
    Check a template before it is stored.

    Raises:
        InvalidTemplateError: If the name is blank, there are no columns,
                              or a column name is blank
    """
    validate_config(template.to_dict(), "template", f"template '{template.name}'", InvalidTemplateError)


class TemplateStore:
    """CRUD operations over templates kept in a StorageBackend."""

    NAMESPACE = "templates"

    def __init__(self, backend: StorageBackend):
        self.backend = backend

    def list(self) -> List[Template]:
        """All stored templates in creation order."""
        return [Template.from_dict(record) for record in self.backend.load_all(self.NAMESPACE)]

    def get(self, template_id: str) -> Template:
        """
        Load one template.

        Raises:
            RecordNotFoundError: If no template has that id
        """
        record = self.backend.get(self.NAMESPACE, template_id)
        if record is None:
            raise RecordNotFoundError("Template", template_id)
        return Template.from_dict(record)

    def find(self, template_id: str) -> Optional[Template]:
        record = self.backend.get(self.NAMESPACE, template_id)
        return Template.from_dict(record) if record is not None else None

    def save(self, template: Template) -> Template:
        """
        Validate and store a template.

        A template without an id is created with a new one; a template with
        an id replaces the stored version.

        Args:
            template: Template to store

        Returns:
            The stored template, carrying its id

        Raises:
            InvalidTemplateError: If validation fails
        """
        validate_template(template)
        if not template.id:
            template = template.with_changes(id=uuid.uuid4().hex)
        self.backend.put(self.NAMESPACE, template.id, template.to_dict())
        logger.debug("Saved template '%s' (%s) with %d columns",
                     template.name, template.id, len(template.columns))
        return template

    def duplicate(self, template_id: str) -> Template:
        """
        Copy a template under a new id, appending ' (Copy)' to the name.

        Raises:
            RecordNotFoundError: If no template has that id
        """
        original = self.get(template_id)
        return self.save(original.with_changes(id=None, name=original.name + COPY_SUFFIX))

    def delete(self, template_id: str) -> bool:
        """Delete a template; False if it did not exist."""
        return self.backend.delete(self.NAMESPACE, template_id)

    def export_as_header_row(self, template: Template, delimiter: str = ",") -> str:
        """
        Render the template's column names as one delimited header line.

        Args:
            template: Template to export
            delimiter: Field delimiter

        Returns:
            The header line, quoted where a name needs it
        """
        header_only = Table(name=template.name, headers=template.column_names, rows=(), delimiter=delimiter)
        return serialize_table(header_only)

    def import_from_header_row(
        self,
        text: str,
        name: str = "Imported template",
        description: str = "",
        delimiter: Optional[str] = None
    ) -> Template:
        """
        Create and store a template from the first line of delimited text.

        Every field of the first line becomes a column of type 'string'.
        Any further lines are ignored.

        Args:
            text: Delimited text whose first line holds the column names
            name: Template name
            description: Template description
            delimiter: Field delimiter; detected when not given

        Returns:
            The stored template

        Raises:
            InvalidTemplateError: If the text has no header line or a column
                                  name is blank
        """
        try:
            table = parse_text(text, delimiter=delimiter, has_header=True, name=name)
        except EmptyInputError as e:
            raise InvalidTemplateError(f"No header row to import: {e}") from e
        return self.create_from_table(table, name, description)

    def create_from_table(self, table: Table, name: str, description: str = "") -> Template:
        """Create and store a template with one 'string' column per table header."""
        template = Template(
            name=name,
            description=description,
            columns=[TemplateColumn(name=header) for header in table.headers],
        )
        return self.save(template)
