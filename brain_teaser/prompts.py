"""Prompt templates for the LLM-backed steps."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brain_teaser.models import QuestionRecord

PRONUNCIATION_PROMPT = """\
你是一个幼儿中文识字教学专家，面向5-12岁的小朋友。

题目：{question_text}
选项：{options_formatted}

请为以下每个中文字生成读音信息：
{chars}

要求：
1. pinyin：带声调拼音（如 lì、shén）
2. ttsText：帮助孩子记住这个字的读音的短语。
   - 格式必须严格为：“X”：“YY”的“X”，其中X是这个字，YY是包含这个字的常见词
   - 例如：“树”：“大树”的“树”、“妈”：“妈妈”的“妈”、“苹”：“苹果”的“苹”
   - 要求使用孩子日常生活中最常见、最容易理解的词语
   - 优先选择：身体部位（眼睛的眼）、家人称呼（妈妈的妈）、日常物品（书包的书）、动物（小猫的猫）、食物（苹果的苹）、颜色（红色的红）、大自然（太阳的太）
   - 避免使用成语、文言文、或者孩子不熟悉的词
3. 多音字要根据题目语境选择正确读音

请严格按照以下 JSON 格式返回，不要包含其他内容：
{{
  "字1": {{ "pinyin": "...", "ttsText": "“字1”：“XX”的“字1”" }},
  "字2": {{ "pinyin": "...", "ttsText": "“字2”：“XX”的“字2”" }}
}}
"""

MODERATION_PROMPT = """\
你是一个儿童内容审核专家。请逐条审查以下脑筋急转弯题目，判断是否适合 5-12 岁小朋友。

审查标准——以下任何一条不满足就应该淘汰：
1. 不能包含暴力、血腥、恐怖、死亡相关内容
2. 不能包含色情、性暗示、恋爱相关内容
3. 不能包含赌博、毒品、犯罪相关内容
4. 不能包含歧视、侮辱、脏话相关内容
5. 题目的理解难度不能超出12岁孩子的认知水平（如涉及复杂政治、经济、法律概念）
6. 答案的逻辑不能过于牵强或无聊，应该有趣味性
7. 不能涉及成人世界的社会话题（如婚姻问题、职场潜规则等）

题目列表：
{items}

请严格按照以下 JSON 格式返回，results 数组中每个元素对应一道题：
{{
  "results": [
    {{ "id": 数字, "keep": true或false, "reason": "保留或淘汰的简要理由" }}
  ]
}}

只返回 JSON，不要包含其他内容。
"""

IMPORT_PROMPT = """\
你是一个儿童内容审核员和脑筋急转弯专家。

以下是一批脑筋急转弯题目和答案。请完成两个任务：

**任务1：筛选**
只保留适合 5-12 岁小朋友的题目。排除以下类型：
- 涉及暴力、死亡、恐怖、色情、成人幽默的
- 需要深厚文化知识（如历史典故）才能理解的
- 涉及赌博、犯罪、酒精等不适合儿童的话题
- 答案过于牵强或不合逻辑，小朋友难以理解的
- 纯文字游戏（如猜字谜、拆字）5岁小朋友无法理解的

**任务2：生成选项**
对于保留的每道题，生成3个选项（1个正确答案 + 2个干扰项）。要求：
- 正确答案来自原文，可以适当简化（去掉"因为"等前缀）
- 干扰项要看起来合理但错误，适合小朋友的认知水平
- 每个选项尽量简短（2-8个字）

题目列表：
{items}

请严格按照以下 JSON 格式返回，不要包含其他内容：
{{
  "selected": [
    {{
      "index": 1,
      "text": "题目文本",
      "type": "logic|math|animal|daily",
      "options": [
        {{"text": "正确答案", "isCorrect": true}},
        {{"text": "干扰项1", "isCorrect": false}},
        {{"text": "干扰项2", "isCorrect": false}}
      ]
    }}
  ]
}}

注意：
- index 是上面题目列表中的序号（1-based）
- type 根据题目内容分类：逻辑推理=logic, 数学计算=math, 动物相关=animal, 日常常识=daily
- 如果一道题不适合小朋友，直接不要放在 selected 数组中
"""


def format_options(record: QuestionRecord) -> str:
    return "；".join(f"{o.id}. {o.text}" for o in record.options)


def format_moderation_items(records: list[QuestionRecord]) -> str:
    lines = []
    for r in records:
        opts = " ".join(f"{o.id}) {o.text}" for o in r.options)
        answer = r.correct_option.text if r.correct_option else ""
        lines.append(f"[ID:{r.id}] {r.text} | 选项: {opts} | 答案: {answer}")
    return "\n".join(lines)


def format_import_items(items: list[tuple[str, str]]) -> str:
    return "\n".join(f"{i}. 题：{q} 答：{a}" for i, (q, a) in enumerate(items, 1))
