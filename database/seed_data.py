"""Static fortune catalog inserted on first start."""

from __future__ import annotations

from core.constants import FortuneCategory

FORTUNE_SEED: tuple[tuple[str, str], ...] = (
    ("2026年财运爆棚，金银满屋！", FortuneCategory.WEALTH.value),
    ("新年新气象，事业蒸蒸日上！", FortuneCategory.CAREER.value),
    ("桃花朵朵开，爱情甜如蜜！", FortuneCategory.LOVE.value),
    ("身体健康，万事如意！", FortuneCategory.HEALTH.value),
    ("学业有成，智慧满满！", FortuneCategory.STUDY.value),
    ("贵人相助，逢凶化吉！", FortuneCategory.GENERAL.value),
    ("心想事成，好运连连！", FortuneCategory.GENERAL.value),
    ("家庭和睦，幸福美满！", FortuneCategory.FAMILY.value),
    ("投资有道，收益丰厚！", FortuneCategory.WEALTH.value),
    ("升职加薪，前程似锦！", FortuneCategory.CAREER.value),
    ("真爱降临，缘分天定！", FortuneCategory.LOVE.value),
    ("精神饱满，活力四射！", FortuneCategory.HEALTH.value),
    ("考试顺利，金榜题名！", FortuneCategory.STUDY.value),
    ("出行平安，一路顺风！", FortuneCategory.GENERAL.value),
    ("朋友满天下，人缘极佳！", FortuneCategory.SOCIAL.value),
    ("创业成功，财源广进！", FortuneCategory.CAREER.value),
    ("偏财运旺，意外之喜！", FortuneCategory.WEALTH.value),
    ("桃花运势，魅力无限！", FortuneCategory.LOVE.value),
    ("身心健康，长寿百岁！", FortuneCategory.HEALTH.value),
    ("学习进步，智慧增长！", FortuneCategory.STUDY.value),
    ("马年大吉，万事顺心！", FortuneCategory.GENERAL.value),
    ("家业兴旺，子孙满堂！", FortuneCategory.FAMILY.value),
    ("正财偏财，双双到来！", FortuneCategory.WEALTH.value),
    ("职场得意，领导赏识！", FortuneCategory.CAREER.value),
    ("姻缘美满，白头偕老！", FortuneCategory.LOVE.value),
    ("疾病远离，健康常伴！", FortuneCategory.HEALTH.value),
    ("才华横溢，学有所成！", FortuneCategory.STUDY.value),
    ("吉星高照，福气满满！", FortuneCategory.GENERAL.value),
    ("人际和谐，贵人扶持！", FortuneCategory.SOCIAL.value),
    ("财富自由，生活无忧！", FortuneCategory.WEALTH.value),
    ("事业有成，名利双收！", FortuneCategory.CAREER.value),
    ("爱情甜蜜，幸福永恒！", FortuneCategory.LOVE.value),
    ("体魄强健，精力充沛！", FortuneCategory.HEALTH.value),
    ("博学多才，前途光明！", FortuneCategory.STUDY.value),
    ("好运当头，诸事顺利！", FortuneCategory.GENERAL.value),
    ("家和万事兴，团圆美满！", FortuneCategory.FAMILY.value),
    ("横财就手，富贵逼人！", FortuneCategory.WEALTH.value),
    ("步步高升，青云直上！", FortuneCategory.CAREER.value),
    ("情深意重，相伴终生！", FortuneCategory.LOVE.value),
    ("延年益寿，福寿双全！", FortuneCategory.HEALTH.value),
    ("学富五车，才高八斗！", FortuneCategory.STUDY.value),
    ("紫气东来，祥瑞满门！", FortuneCategory.GENERAL.value),
    ("左右逢源，人缘极佳！", FortuneCategory.SOCIAL.value),
    ("金玉满堂，富甲一方！", FortuneCategory.WEALTH.value),
    ("功成名就，光宗耀祖！", FortuneCategory.CAREER.value),
    ("佳偶天成，琴瑟和鸣！", FortuneCategory.LOVE.value),
    ("身强体壮，百病不侵！", FortuneCategory.HEALTH.value),
    ("满腹经纶，学贯中西！", FortuneCategory.STUDY.value),
    ("龙腾虎跃，大展宏图！", FortuneCategory.GENERAL.value),
    ("四世同堂，其乐融融！", FortuneCategory.FAMILY.value),
)
