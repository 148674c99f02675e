"""The catalog's form rule sets, one explicit value per form."""

from models import BOOKINSTANCE_STATUSES
from services.validation import (
    FieldSpec,
    FormRules,
    alphanumeric,
    iso_date,
    length,
    one_of,
    required,
)

AUTHOR_FORM = FormRules(fields=(
    FieldSpec("first_name", rules=(
        required("First name must be specified."),
        alphanumeric("First name has non-alphanumeric characters."),
        length("First name must be at most 100 characters.", max_length=100),
    )),
    FieldSpec("family_name", rules=(
        required("Family name must be specified."),
        alphanumeric("Family name has non-alphanumeric characters."),
        length("Family name must be at most 100 characters.", max_length=100),
    )),
    FieldSpec("date_of_birth", optional=True, rules=(iso_date("Invalid date of birth"),)),
    FieldSpec("date_of_death", optional=True, rules=(iso_date("Invalid date of death"),)),
))

GENRE_FORM = FormRules(fields=(
    FieldSpec("name", rules=(
        required("Genre name required"),
        length("Genre name must be between 3 and 100 characters.", min_length=3, max_length=100),
    )),
))

BOOK_FORM = FormRules(fields=(
    FieldSpec("title", rules=(required("Title must not be empty."),)),
    FieldSpec("author", rules=(required("Author must not be empty."),)),
    FieldSpec("summary", rules=(required("Summary must not be empty."),)),
    FieldSpec("isbn", rules=(required("ISBN must not be empty"),)),
    FieldSpec("genre", multi=True),
))

BOOKINSTANCE_FORM = FormRules(fields=(
    FieldSpec("book", rules=(required("Book must be specified"),)),
    FieldSpec("imprint", rules=(required("Imprint must be specified"),)),
    FieldSpec("status", default="Maintenance",
              rules=(one_of(BOOKINSTANCE_STATUSES, "Invalid status"),)),
    FieldSpec("due_back", optional=True, rules=(iso_date("Invalid date"),)),
))
