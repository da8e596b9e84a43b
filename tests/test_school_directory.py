import unittest

from hwasanscore.services.school_directory import SCHOOLS, get_school, search_schools


class SchoolDirectoryTests(unittest.TestCase):
    def test_empty_term_lists_everything(self):
        self.assertEqual(len(search_schools("")), len(SCHOOLS))
        self.assertEqual(len(search_schools("   ")), 10)

    def test_search_by_name_or_type(self):
        ids = [school.id for school in search_schools("과학")]
        self.assertEqual(ids, ["hs1", "hs3", "hs5", "hs9", "hs10"])

    def test_search_by_location(self):
        ids = [school.id for school in search_schools("서울")]
        self.assertEqual(ids, ["hs5", "hs6", "hs9"])

    def test_no_match(self):
        self.assertEqual(search_schools("제주"), [])

    def test_get_school(self):
        self.assertEqual(get_school("hs2").name, "상산고등학교")
        self.assertIsNone(get_school("hs99"))


if __name__ == "__main__":
    unittest.main()
