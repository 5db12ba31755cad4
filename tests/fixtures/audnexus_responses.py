# ABOUTME: Canned Audible catalog and Audnexus API responses for testing.
# ABOUTME: Trimmed copies of real payload shapes for search and book lookup.

BOOK_RESPONSE = {
    "asin": "B0036UC2LO",
    "authors": [{"asin": "B000APZOQA", "name": "Brandon Sanderson"}],
    "narrators": [{"name": "Michael Kramer"}, {"name": "Kate Reading"}],
    "publisherName": "Macmillan Audio",
    "language": "english",
    "releaseDate": "2010-08-31T00:00:00.000Z",
    "seriesPrimary": {"asin": "B0035ZRAZ4", "name": "The Stormlight Archive", "position": "1"},
    "seriesSecondary": {"name": "Cosmere", "position": "7"},
    "subtitle": "Book One of the Stormlight Archive",
    "summary": "<p>Roshar is a world of stone and storms.</p>",
    "description": "Roshar is a world of stone and storms.",
    "genres": [
        {"asin": "18580606011", "name": "Science Fiction & Fantasy", "type": "genre"},
        {"asin": "18580607011", "name": "Epic", "type": "tag"},
    ],
    "isbn": "9781427209733",
    "image": "https://m.media-amazon.com/images/I/91KzZWpgmyL.jpg",
    "runtimeLengthMin": 2733,
    "formatType": "unabridged",
    "region": "us",
    "title": "The Way of Kings",
}

BOOK_RESPONSE_MINIMAL = {
    "asin": "B00MINIMAL",
    "title": "Standalone",
    "authors": [{"name": "Solo Writer"}],
}

BOOK_RESPONSE_NO_ASIN = {
    "title": "Ghost Record",
    "authors": [{"name": "Nobody"}],
}

SEARCH_RESPONSE = {
    "products": [
        {"asin": "B0036UC2LO"},
        {"asin": "B00DA6YEKS"},
        {"asin": "B0036UC2LO"},
        {"title": "no asin here"},
        {"asin": "B07G5YCSCS"},
    ],
    "response_groups": ["always-returned"],
    "total_results": 3,
}

SEARCH_RESPONSE_SINGLE = {
    "products": [{"asin": "B0036UC2LO"}],
    "total_results": 1,
}

SEARCH_RESPONSE_EMPTY = {
    "products": [],
    "total_results": 0,
}
