from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class HighSchool:
    id: str
    name: str
    type: str
    location: str
    eligibility: str
    description: str
    progression_rate: str
    image_url: str = ""


SCHOOLS: Tuple[HighSchool, ...] = (
    HighSchool(
        id="hs1",
        name="전북과학고등학교",
        type="과학고",
        location="전북 익산시",
        eligibility="전북 소재 중학교 졸업예정자",
        description="미래 과학 인재 양성을 목표로 하는 전북 유일의 과학고등학교입니다.",
        progression_rate="대학교 진학률 98%",
    ),
    HighSchool(
        id="hs2",
        name="상산고등학교",
        type="자사고",
        location="전북 전주시",
        eligibility="전국 단위 모집",
        description="수학 교육에 특화된 자율형 사립고등학교입니다.",
        progression_rate="의치한 및 명문대 진학률 최상위",
    ),
    HighSchool(
        id="hs3",
        name="경기과학고등학교",
        type="영재학교",
        location="경기 수원시",
        eligibility="전국 단위 모집",
        description="대한민국 최초의 과학고등학교이자 과학 영재 교육기관입니다.",
        progression_rate="이공계 명문대 진학률 90% 이상",
    ),
    HighSchool(
        id="hs4",
        name="민족사관고등학교",
        type="자사고",
        location="강원 횡성군",
        eligibility="전국 단위 모집",
        description="민족 정신과 세계적 안목을 갖춘 지도자 양성을 목표로 합니다.",
        progression_rate="국내외 명문대 진학률 최상위",
    ),
    HighSchool(
        id="hs5",
        name="서울과학고등학교",
        type="영재학교",
        location="서울 종로구",
        eligibility="전국 단위 모집",
        description="최고 수준의 과학 영재학교입니다.",
        progression_rate="서울대 진학률 최상위",
    ),
    HighSchool(
        id="hs6",
        name="하나고등학교",
        type="자사고",
        location="서울 은평구",
        eligibility="서울 단위 모집",
        description="토론식 수업과 창의적 체험 활동이 강점인 자사고입니다.",
        progression_rate="서울대 및 명문대 진학률 최상위",
    ),
    HighSchool(
        id="hs7",
        name="전북외국어고등학교",
        type="외고",
        location="전북 군산시",
        eligibility="전북 소재 중학교 졸업예정자",
        description="글로벌 리더를 꿈꾸는 외교 인재들이 모이는 곳입니다.",
        progression_rate="주요 10대 대학 진학률 우수",
    ),
    HighSchool(
        id="hs8",
        name="용인한국외국어대학교부설고등학교",
        type="자사고",
        location="경기 용인시",
        eligibility="전국 단위 모집",
        description="국제/인문/자연 통합 교육을 운영합니다.",
        progression_rate="국내 대학 및 해외 대학 진학 실적 우수",
    ),
    HighSchool(
        id="hs9",
        name="한성과학고등학교",
        type="과학고",
        location="서울 서대문구",
        eligibility="서울 소재 중학교 졸업예정자",
        description="서울 지역 이공계 인재들의 요람입니다.",
        progression_rate="이공계 특성화 대학 진학률 우수",
    ),
    HighSchool(
        id="hs10",
        name="부산과학고등학교",
        type="과학고",
        location="부산 금정구",
        eligibility="부산 소재 중학교 졸업예정자",
        description="해양 수도의 과학 인재를 육성합니다.",
        progression_rate="대학교 진학률 95% 이상",
    ),
)


def get_school(school_id: str) -> Optional[HighSchool]:
    for school in SCHOOLS:
        if school.id == school_id:
            return school
    return None


def search_schools(term: str = "") -> List[HighSchool]:
    needle = (term or "").strip().lower()
    if not needle:
        return list(SCHOOLS)
    return [
        school
        for school in SCHOOLS
        if needle in school.name.lower() or needle in school.type.lower() or needle in school.location.lower()
    ]
