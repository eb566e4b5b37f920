# ABOUTME: SQL statements for reading a Zotero library database.
# ABOUTME: Selects top-level items and their metadata, creators, collections, tags, notes, attachments.

# Item types that are children or annotations, never top-level records.
EXCLUDED_ITEM_TYPES = ("attachment", "annotation", "note")

_EXCLUDED = ", ".join(f"'{name}'" for name in EXCLUDED_ITEM_TYPES)

SELECT_ITEMS = f"""
SELECT  items.itemID AS id,
        items.dateModified AS modified,
        items.key AS key,
        items.libraryID AS library_id,
        itemTypes.typeName AS item_type
    FROM items
    LEFT JOIN itemTypes
        ON items.itemTypeID = itemTypes.itemTypeID
    LEFT JOIN deletedItems
        ON items.itemID = deletedItems.itemID
    WHERE itemTypes.typeName NOT IN ({_EXCLUDED})
    AND deletedItems.itemID IS NULL
"""

SELECT_ITEMS_SINCE = SELECT_ITEMS + " AND items.dateModified > ?"

ORDER_ITEMS = " ORDER BY items.itemID"

SELECT_VALID_IDS = f"""
SELECT  items.itemID AS id
    FROM items
    LEFT JOIN itemTypes
        ON items.itemTypeID = itemTypes.itemTypeID
    LEFT JOIN deletedItems
        ON items.itemID = deletedItems.itemID
    WHERE itemTypes.typeName NOT IN ({_EXCLUDED})
    AND deletedItems.itemID IS NULL
"""

SELECT_HORIZON = "SELECT MAX(dateModified) AS horizon FROM items"

SELECT_METADATA = """
SELECT  fields.fieldName AS name,
        itemDataValues.value AS value
    FROM itemData
    LEFT JOIN fields
        ON itemData.fieldID = fields.fieldID
    LEFT JOIN itemDataValues
        ON itemData.valueID = itemDataValues.valueID
    WHERE itemData.itemID = ?
    ORDER BY fields.fieldName
"""

_FIELD_VALUE = """
    (SELECT itemDataValues.value
        FROM itemData
        LEFT JOIN fields
            ON itemData.fieldID = fields.fieldID
        LEFT JOIN itemDataValues
            ON itemData.valueID = itemDataValues.valueID
        WHERE itemData.itemID = items.itemID AND fields.fieldName = '{name}')
"""

SELECT_ATTACHMENTS = f"""
SELECT  items.key AS key,
        itemAttachments.path AS path,
        itemAttachments.contentType AS content_type,
        {_FIELD_VALUE.format(name="title")} AS title,
        {_FIELD_VALUE.format(name="url")} AS url
    FROM itemAttachments
    JOIN items
        ON itemAttachments.itemID = items.itemID
    LEFT JOIN deletedItems
        ON items.itemID = deletedItems.itemID
    WHERE itemAttachments.parentItemID = ?
    AND deletedItems.itemID IS NULL
    ORDER BY items.key
"""

SELECT_COLLECTIONS = """
SELECT  collections.collectionName AS name
    FROM collections
    JOIN collectionItems
        ON collections.collectionID = collectionItems.collectionID
    WHERE collectionItems.itemID = ?
    ORDER BY collections.collectionName
"""

SELECT_CREATORS = """
SELECT  creators.firstName AS given,
        creators.lastName AS family,
        itemCreators.orderIndex AS "index",
        creatorTypes.creatorType AS role
    FROM itemCreators
    JOIN creators
        ON itemCreators.creatorID = creators.creatorID
    LEFT JOIN creatorTypes
        ON itemCreators.creatorTypeID = creatorTypes.creatorTypeID
    WHERE itemCreators.itemID = ?
    ORDER BY itemCreators.orderIndex ASC
"""

SELECT_NOTES = """
SELECT  itemNotes.note AS note
    FROM itemNotes
    LEFT JOIN deletedItems
        ON itemNotes.itemID = deletedItems.itemID
    WHERE itemNotes.parentItemID = ?
    AND deletedItems.itemID IS NULL
    ORDER BY itemNotes.itemID
"""

SELECT_TAGS = """
SELECT  tags.name AS name
    FROM tags
    JOIN itemTags
        ON tags.tagID = itemTags.tagID
    WHERE itemTags.itemID = ?
    ORDER BY tags.name
"""
