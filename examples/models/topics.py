"""
==============================
Topic modeling with LDA
==============================

In this example we fit a three topic LDA model on a handful of
short reviews about phones, restaurants and hotels. Text is
tokenized, stop words are removed and terms are counted inside
the fitted pipeline, so new documents can be scored directly.
"""
print(__doc__)

import pandas as pd

from sparktour.engine import connect, copy_to, load_sample
from sparktour.models import lda

with connect() as conn:
    reviews = load_sample(conn, "reviews")
    fit = lda(reviews, "text", k=3, max_iter=30, seed=42)
    print(fit.topics(n_terms=4))
    print(fit.evaluate(reviews))

    new = copy_to(conn, pd.DataFrame({
        "id": [100],
        "text": ["The waiter brought cold pasta but the wine was great"]
    }))
    print(fit.predict(new).select("id", "topic_distribution").collect())
