from product_grouping.grouping.clustering import build_clusters, cluster_score, order_names


def test_filmjolk_variants_cluster_and_apple_is_dropped() -> None:
    clusters = build_clusters(["Filmjölk 3%", "Filmjölk 3 procent", "Äpple"], threshold=0.6)

    assert len(clusters) == 1
    cluster = clusters[0]
    assert cluster.members == ["Filmjölk 3%", "Filmjölk 3 procent"]
    assert cluster.suggested_name == "Filmjölk 3%"
    assert cluster.score == 0.7
    assert cluster.source == "similarity"


def test_three_member_cluster_scores_higher() -> None:
    clusters = build_clusters(["Coca Cola", "Coca Cola Zero", "Coca Cola Light"])

    assert len(clusters) == 1
    assert clusters[0].members == ["Coca Cola", "Coca Cola Zero", "Coca Cola Light"]
    assert clusters[0].suggested_name == "Coca Cola"
    assert clusters[0].score == 0.9


def test_shortest_name_tie_goes_to_first_member() -> None:
    clusters = build_clusters(["Mjölk Arla 1L", "Mjölk Arla 3L"])

    assert clusters[0].suggested_name == "Mjölk Arla 1L"


def test_singletons_repeats_and_blanks_yield_nothing() -> None:
    assert build_clusters(["Banan", "Banan", "", "   "]) == []
    assert build_clusters([]) == []


def test_member_is_claimed_by_first_matching_seed() -> None:
    clusters = build_clusters(["Kaffe", "Kaffe Mörkrost", "Mörkrost"])

    # "Kaffe Mörkrost" is taken by the "Kaffe" seed, leaving "Mörkrost" alone.
    assert [c.members for c in clusters] == [["Kaffe", "Kaffe Mörkrost"]]


def test_clustering_is_reproducible() -> None:
    names = order_names(["Kaffe", "Kafe", "Bryggkaffe", "Te", "Grönt te"])
    assert build_clusters(names) == build_clusters(names)


def test_threshold_controls_grouping() -> None:
    names = ["Arla mjölk", "mjölk Garant"]
    assert build_clusters(names, threshold=0.6) == []
    assert len(build_clusters(names, threshold=0.5)) == 1


def test_order_names_alphabetical_by_default() -> None:
    assert order_names(["b", "a", "c", "a"]) == ["a", "b", "c"]


def test_order_names_by_frequency() -> None:
    occurrences = {"Banan": 2, "Äpple": 5, "Ost": 2}
    assert order_names(["Banan", "Ost", "Äpple"], occurrences) == ["Äpple", "Banan", "Ost"]


def test_cluster_score() -> None:
    assert cluster_score(2) == 0.7
    assert cluster_score(3) == 0.9
