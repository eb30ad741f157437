"""FeedFlow - RSS / Atom 聚合阅读器."""
