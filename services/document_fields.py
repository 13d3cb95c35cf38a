"""
Document Field Extractor.

Reads the document reader's visual field list

    ContainerList.List[].DocVisualExtendedInfo.pArrayFields[] = {FieldName, Buf_Text}

into a case-insensitive name → value map, then resolves output fields from
ordered alias lists (first alias with a non-blank value wins). Supporting a
new vendor field name only means adding it to an alias list below.
"""
from typing import Any, Dict, Optional

from models.schemas import IdentityDocumentInfo
from services.json_tree import as_list, as_str, find_first_object, find_first_string, get_property
from services.portrait_extractor import extract_document_portrait
from utils.text_normalization import is_blank

SURNAME_ALIASES = ("Surname", "Last Name", "Family Name")
GIVEN_NAMES_ALIASES = ("Given Names", "Given Name", "First Name")
FULL_NAME_ALIASES = ("Name", "Full Name")
DOCUMENT_NUMBER_ALIASES = ("Document Number", "Document No.", "Doc Number", "DocumentNo", "Document ID")
DOCUMENT_TYPE_ALIASES = ("Document Class Code", "Document Type", "Document Type Code", "Document Class")
DATE_OF_BIRTH_ALIASES = ("Date of Birth", "Birth Date", "DOB")
EXPIRY_DATE_ALIASES = ("Date of Expiry", "Date of Expiration", "Expiry Date", "Expiration Date")

# Identity records used for document-to-document comparison
IDENTITY_NAME_ALIASES = GIVEN_NAMES_ALIASES + FULL_NAME_ALIASES
IDENTITY_DOCUMENT_NUMBER_ALIASES = (
    "Document Number", "Document No.", "Doc Number",
    "Passport Number", "Passport No.", "ID Number", "Identity Number",
)
GENDER_ALIASES = ("Sex", "Gender")

MRZ_TEXT_KEYS = (
    "mrz", "MRZ", "mrzText", "MRZText", "mrzString", "MRZString",
    "rawMRZ", "rawMrz", "mrzRaw", "MRZRaw", "mrzTextRaw",
)
MRZ_OBJECT_TEXT_KEYS = ("Text", "Raw", "Value")


def iter_containers(root: Any):
    """Yield the page containers of `root.ContainerList.List[]`."""
    for item in as_list(get_property(get_property(root, "ContainerList"), "List")):
        if isinstance(item, dict):
            yield item


def extract_visual_fields(root: Any) -> Dict[str, str]:
    """
    Build the visual field map across all pages.

    Keys are lower-cased field names. Blank names and blank values are
    skipped; values are trimmed; a field repeated on a later page
    overwrites the earlier one.
    """
    fields: Dict[str, str] = {}

    for container in iter_containers(root):
        doc_info = get_property(container, "DocVisualExtendedInfo")
        for field in as_list(get_property(doc_info, "pArrayFields")):
            name = as_str(get_property(field, "FieldName"))
            if is_blank(name):
                continue

            value = as_str(get_property(field, "Buf_Text"))
            if not is_blank(value):
                fields[name.lower()] = value.strip()

    return fields


def get_field_value(fields: Dict[str, str], *aliases: str) -> Optional[str]:
    """First alias present in `fields` with a non-blank value."""
    for alias in aliases:
        value = fields.get(alias.lower())
        if not is_blank(value):
            return value
    return None


def resolve_full_name(fields: Dict[str, str]) -> Optional[str]:
    """'SURNAME GIVEN' when both parts exist, otherwise a whole-name field."""
    surname = get_field_value(fields, *SURNAME_ALIASES)
    given_names = get_field_value(fields, *GIVEN_NAMES_ALIASES)

    if surname and given_names:
        return f"{surname} {given_names}".strip()

    return get_field_value(fields, *FULL_NAME_ALIASES)


def extract_mrz_text(root: Any) -> Optional[str]:
    """
    Find the raw MRZ text.

    Looks for a string under a known MRZ key anywhere in the tree, then
    for a Text/Raw/Value string inside an `MRZ` object.
    """
    direct = find_first_string(root, MRZ_TEXT_KEYS)
    if direct is not None:
        return direct

    mrz_node = find_first_object(root, "MRZ")
    if mrz_node is not None:
        return find_first_string(mrz_node, MRZ_OBJECT_TEXT_KEYS)

    return None


def extract_identity_document(root: Any, raw_json: Optional[str] = None) -> IdentityDocumentInfo:
    """
    Build the identity record used to compare two documents.

    Args:
        root: Parsed document reader response
        raw_json: Original response body, echoed back to the caller
    """
    fields = extract_visual_fields(root)

    return IdentityDocumentInfo(
        name=get_field_value(fields, *IDENTITY_NAME_ALIASES),
        surname=get_field_value(fields, *SURNAME_ALIASES),
        document_number=get_field_value(fields, *IDENTITY_DOCUMENT_NUMBER_ALIASES),
        date_of_birth=get_field_value(fields, *DATE_OF_BIRTH_ALIASES),
        gender=get_field_value(fields, *GENDER_ALIASES),
        mrz_text=extract_mrz_text(root),
        portrait_image_base64=extract_document_portrait(root),
        raw_response_json=raw_json,
    )
