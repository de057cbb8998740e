from parley.similarity import preprocess, tokenize


def test_ascii_words_are_tokens():
    assert tokenize("Microservices, API-design!") == ["microservices", "api", "design"]


def test_cjk_runs_become_bigrams():
    assert tokenize("微服务架构") == ["微服", "服务", "务架", "架构"]


def test_mixed_runs_split_by_script():
    assert tokenize("api微服务") == ["api", "微服", "服务"]


def test_empty_input():
    assert tokenize("") == []
    assert tokenize(None) == []
    assert preprocess("   ") == []


def test_preprocess_drops_stopwords_and_single_chars():
    assert preprocess("the cost of 微服务 a b") == ["cost", "微服", "服务"]


def test_single_cjk_characters_dropped():
    assert preprocess("我 的 书") == []


def test_chinese_stopword_bigrams_dropped():
    assert "应该" not in preprocess("是否应该采用微服务")
    assert "微服" in preprocess("是否应该采用微服务")
