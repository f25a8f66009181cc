"""GROQ queries issued against the content store.

Every projection exposes ``_type``, ``language`` and ``slug`` so results can
be turned into document identities uniformly.

No-index documents never appear as translations of another document, nor in
sitemaps. Every query below that lists siblings or sitemap documents applies
``INDEXABLE_FILTER`` to them, so live alternates and sitemap alternates are
built from the same documents.
"""

INDEXABLE_FILTER = "seo.noIndex != true"

# Current page plus its explicit translation group
PAGE_TRANSLATIONS_QUERY = """
*[
  _type == 'page' &&
  metadata.slug.current == $slug &&
  language == $locale
][0]{
  _id,
  _type,
  language,
  'slug': metadata.slug.current,
  'translations': *[_type == 'translation.metadata' && references(^._id)]
    .translations[].value->[seo.noIndex != true]{
      _type,
      language,
      'slug': metadata.slug.current
    }
}
"""

HOMEPAGE_TRANSLATIONS_QUERY = """
*[
  _type == 'page' &&
  metadata.slug.current == 'index' &&
  language != $locale &&
  seo.noIndex != true
]{
  _type,
  language,
  'slug': metadata.slug.current
}
"""

# Collection items are separate documents per language, linked only by slug
COLLECTION_TRANSLATIONS_QUERY = """
*[
  _type == $collectionType &&
  metadata.slug.current == $slug &&
  seo.noIndex != true
]{
  _type,
  language,
  'slug': metadata.slug.current,
  'collectionSlug': collection->metadata.slug.current
}
"""

SITEMAP_DOCUMENTS_QUERY = """
*[
  (_type == 'page' || _type in $collectionTypes) &&
  defined(metadata.slug.current) &&
  !(metadata.slug.current in ['404']) &&
  seo.noIndex != true
]|order(_type asc, metadata.slug.current asc){
  _id,
  _type,
  language,
  'slug': metadata.slug.current,
  'collectionSlug': collection->metadata.slug.current,
  'lastModified': _updatedAt
}
"""

SITEMAP_TRANSLATIONS_QUERY = """
*[_type == 'translation.metadata']{
  _id,
  'translations': translations[value->seo.noIndex != true]{
    'value': value->{
      _id,
      _type,
      language,
      'slug': metadata.slug.current
    }
  }
}
"""

FRONTPAGES_QUERY = """
*[
  _type == 'page' &&
  defined(modules) &&
  count(modules[_type in $frontpageTypes]) > 0
]|order(_updatedAt desc){
  _id,
  'slug': metadata.slug.current,
  'locale': language,
  'frontpageType': modules[_type in $frontpageTypes][0]._type,
  _updatedAt
}
"""
