from datetime import datetime, timedelta, timezone

import pytest

from newsdigest.data.models import NewsItem, Region
from newsdigest.selection.selector import PassRule, SelectionConfig, TopNewsSelector, select_top_news

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

OVERSEAS_HEADLINES = [
    ("OpenAI releases GPT-5 with stronger reasoning", "TechCrunch"),
    ("Anthropic publishes interpretability paper on Claude", "The Verge"),
    ("NVIDIA unveils new Blackwell inference chips", "Wired"),
    ("Stanford study benchmarks medical chatbots", "MIT Technology Review"),
]

DOMESTIC_HEADLINES = [
    ("百度发布文心大模型新版本", "机器之心"),
    ("阿里巴巴开源通义千问新模型", "量子位"),
    ("腾讯混元升级多模态能力", "36氪"),
    ("智谱完成新一轮融资", "InfoQ"),
]

EXTRA_HEADLINES = [
    ("Google DeepMind unveils AlphaFold update for protein design", "BBC Technology", Region.OVERSEAS),
    ("Meta open-sources Llama 4 weights for researchers", "Engadget", Region.OVERSEAS),
    ("Microsoft signs multiyear AI deal with Oracle", "ZDNet", Region.OVERSEAS),
    ("xAI raises $6 billion to expand Grok", "VentureBeat", Region.OVERSEAS),
    ("Hugging Face launches open robotics toolkit", "Ars Technica", Region.OVERSEAS),
    ("Mistral AI debuts compact model for laptops", "TechCrunch", Region.OVERSEAS),
    ("字节跳动豆包大模型用户突破一亿", "机器之心", Region.DOMESTIC),
    ("华为发布昇腾新芯片", "量子位", Region.DOMESTIC),
    ("月之暗面Kimi支持超长上下文", "36氪", Region.DOMESTIC),
    ("深度求索开源DeepSeek-R1推理模型", "雷锋网", Region.DOMESTIC),
    ("商汤科技发布日日新大模型", "AI科技评论", Region.DOMESTIC),
    ("Apple tests on-device assistant powered by Gemini", "The Verge", Region.OVERSEAS),
]


def build_item(title: str, source: str, region: Region, url: str | None = None, hours_ago: float = 2) -> NewsItem:
    return NewsItem(
        title=title,
        url=url if url is not None else "https://news.example.com/" + title.replace(" ", "-"),
        source=source,
        published_at=NOW - timedelta(hours=hours_ago),
        region=region,
    )


def balanced_pool():
    """Overseas and domestic items interleaved."""
    items = []
    for (overseas, o_source), (domestic, d_source) in zip(OVERSEAS_HEADLINES, DOMESTIC_HEADLINES):
        items.append(build_item(overseas, o_source, Region.OVERSEAS))
        items.append(build_item(domestic, d_source, Region.DOMESTIC))
    return items


def full_pool():
    return balanced_pool() + [build_item(title, source, region) for title, source, region in EXTRA_HEADLINES]


def test_output_is_bounded_and_sorted():
    result = TopNewsSelector().select(full_pool(), 14, now=NOW)

    scores = [scored.score for scored in result.selected]
    assert 0 < len(result.selected) <= 14
    assert scores == sorted(scores, reverse=True)
    assert result.stats["selected_count"] == len(result.selected)
    assert result.stats["target_count"] == 14


def test_region_cap_holds_when_one_region_dominates():
    candidates = [build_item(title, source, Region.DOMESTIC) for title, source in DOMESTIC_HEADLINES[:3]]
    candidates.append(build_item(*OVERSEAS_HEADLINES[0], Region.OVERSEAS))

    result = TopNewsSelector().select(candidates, 4, now=NOW)

    regions = [scored.region for scored in result.selected]
    assert regions.count(Region.DOMESTIC) <= 2
    assert len(result.selected) == 3
    assert result.stats["shortfall"] == 1


def test_short_supply_admits_everything():
    candidates = [build_item(title, source, Region.DOMESTIC) for title, source in DOMESTIC_HEADLINES[:3]]

    result = TopNewsSelector().select(candidates, 4, now=NOW)

    assert len(result.selected) == 3


def test_single_region_pool_at_target_is_cut_to_region_cap():
    three = [build_item(title, source, Region.DOMESTIC) for title, source in DOMESTIC_HEADLINES[:3]]
    four = [build_item(title, source, Region.DOMESTIC) for title, source in DOMESTIC_HEADLINES]

    assert len(TopNewsSelector().select(three, 4, now=NOW).selected) == 3
    assert len(TopNewsSelector().select(four, 4, now=NOW).selected) == 2


def test_no_duplicate_urls_in_output():
    first = build_item("OpenAI releases GPT-5 with stronger reasoning", "TechCrunch", Region.OVERSEAS, url="https://x/1")
    second = build_item("Stanford study benchmarks medical chatbots", "Wired", Region.OVERSEAS, url="https://x/1")
    third = build_item("百度发布文心大模型新版本", "机器之心", Region.DOMESTIC, url="https://x/2")

    result = TopNewsSelector().select([first, second, third], 3, now=NOW)

    urls = [scored.url for scored in result.selected]
    assert len(urls) == len(set(urls))
    assert [item for item, _ in result.dropped] == [second]


def test_rejected_items_never_selected():
    junk = build_item("Best hotel deals for the holidays", "Travel Weekly", Region.OVERSEAS)
    result = TopNewsSelector().select(balanced_pool() + [junk], 14, now=NOW)

    assert junk not in result.items
    assert (junk, "rejected (off-topic)") in result.dropped


def test_prior_day_items_are_filtered_first():
    published = build_item("OpenAI releases GPT-5 with stronger reasoning", "TechCrunch", Region.OVERSEAS, url="https://x/1")
    repeat = build_item("GPT-5 is here: what OpenAI shipped", "The Verge", Region.OVERSEAS, url="https://x/1")

    result = TopNewsSelector().select(balanced_pool()[1:] + [repeat], 14, prior_day_items=[published], now=NOW)

    assert repeat not in result.items
    reasons = dict((item.title, reason) for item, reason in result.dropped)
    assert reasons[repeat.title].startswith("cross-day duplicate")


def test_larger_pool_never_selects_fewer():
    pool = balanced_pool()
    selector = TopNewsSelector()

    smaller = selector.select(pool[:4], 6, now=NOW)
    larger = selector.select(pool, 6, now=NOW)

    assert len(smaller.selected) == 4
    assert len(larger.selected) == 6
    assert len(larger.selected) >= len(smaller.selected)


def test_source_cap_prefers_variety_in_strict_pass():
    config = SelectionConfig(region_balance=False, passes=(PassRule(min_score=0, source_cap=1),))
    candidates = [
        build_item("OpenAI releases GPT-5 with stronger reasoning", "TechCrunch", Region.OVERSEAS),
        build_item("NVIDIA unveils new Blackwell inference chips", "TechCrunch", Region.OVERSEAS),
        build_item("Stanford study benchmarks medical chatbots", "Wired", Region.OVERSEAS),
    ]

    result = TopNewsSelector(config).select(candidates, 2, now=NOW)

    assert [scored.source for scored in result.selected] == ["TechCrunch", "Wired"]
    assert result.selected[0].item.title.startswith("OpenAI")


def test_empty_and_zero_target():
    assert TopNewsSelector().select([], 14, now=NOW).selected == []
    assert TopNewsSelector().select(balanced_pool(), 0, now=NOW).selected == []


def test_negative_target_raises():
    with pytest.raises(ValueError):
        TopNewsSelector().select(balanced_pool(), -1)


def test_select_top_news_returns_items():
    items = select_top_news(balanced_pool(), 4, now=NOW)
    assert len(items) == 4
    assert all(isinstance(item, NewsItem) for item in items)


def test_config_rejects_tightening_passes():
    with pytest.raises(ValueError):
        SelectionConfig.from_mapping(
            {"passes": [{"min_score": 10, "source_cap": 3}, {"min_score": 5, "source_cap": 2}]}
        )
    with pytest.raises(ValueError):
        SelectionConfig.from_mapping({"passes": [{"min_score": 5}, {"min_score": 10}]})


def test_config_from_mapping_reads_unlimited_caps():
    config = SelectionConfig.from_mapping(
        {"target_count": 10, "passes": [{"min_score": 20, "source_cap": 2}, {"min_score": 0}]}
    )
    assert config.target_count == 10
    assert config.passes[1] == PassRule(min_score=0, source_cap=None, category_cap=None)
