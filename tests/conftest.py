import pandas as pd
import pytest

from etl.build_app_cards import merge_sentiment
from etl.clean_apps import clean_apps, clean_reviews, deduplicate_apps


def app_row(name, category, rating="4.0", reviews="10", installs="1,000+",
            price="0", size="10M", type_="Free", content="Everyone",
            genres=None, updated="January 7, 2018"):
    return {
        "App": name, "Category": category, "Rating": rating, "Reviews": reviews,
        "Size": size, "Installs": installs, "Type": type_, "Price": price,
        "Content Rating": content, "Genres": genres or category.title(),
        "Last Updated": updated, "Current Ver": "1.0", "Android Ver": "4.1 and up",
    }

def review_row(app, sentiment, polarity="0.0", subjectivity="0.5", text="ok"):
    return {
        "App": app, "Translated_Review": text, "Sentiment": sentiment,
        "Sentiment_Polarity": polarity, "Sentiment_Subjectivity": subjectivity,
    }


@pytest.fixture
def raw_apps():
    return [
        app_row("Alpha", "GAME", "4.8", "100", "1,000,000+", updated="January 7, 2018"),
        app_row("Alpha", "GAME", "4.8", "50", "1,000,000+"),
        app_row("Beta", "GAME", "3.2", "40", "50,000+", price="$2.99", type_="Paid",
                updated="March 1, 2018"),
        app_row("Gamma", "TOOLS", "2.0", "10", "500+", size="Varies with device",
                updated="May 20, 2018"),
        app_row("Delta", "TOOLS", "NaN", "0", "100+", content="Teen"),
        app_row("Eps", "FAMILY", "19", "7", "10,000,000+", price="Free"),
        app_row("", "GAME"),
        app_row("NoCat", ""),
    ]

@pytest.fixture
def raw_reviews():
    return [
        review_row("Alpha", "Positive", "0.8", "0.6"),
        review_row("Alpha", "Negative", "-0.4", "0.3"),
        review_row("Alpha", "Neutral", "0.0", "0.0"),
        review_row("Beta", "positive", "0.5", "0.9"),
        review_row("Gamma", "nan", "0.1", "0.1"),
        review_row("", "Positive"),
        review_row("Zeta", "Negative", "not-a-number", ""),
    ]

@pytest.fixture
def apps(raw_apps):
    return deduplicate_apps(clean_apps(raw_apps))

@pytest.fixture
def reviews(raw_reviews):
    return clean_reviews(raw_reviews)

@pytest.fixture
def cards(apps, reviews):
    return merge_sentiment(apps, reviews)

@pytest.fixture
def empty_apps():
    return clean_apps([])

@pytest.fixture
def empty_reviews():
    return clean_reviews(pd.DataFrame())
