"""
cardflow Card Normalizer -- Field Classification Tests

Field is a tagged union. The variant is chosen from which attributes a raw
field object carries, in a fixed order (map point, contact, metric, list item,
value pair), and anything else becomes a GenericField with its attributes
kept verbatim. Classification never fails a section.
"""

from cardflow.kernel.models import ContactField, GenericField, ListItem, MapPoint, MetricField, ValueField
from cardflow.kernel.normalize import classify_field


def classify(raw, index=0, taken=None):
    return classify_field(raw, "sec", index, taken if taken is not None else set())


class TestVariants:
    def test_value_pair(self):
        field = classify({"label": "Industry", "value": "Tech"})
        assert isinstance(field, ValueField)
        assert field.id == "sec_industry"
        assert field.value == "Tech"

    def test_metric_requires_numeric_value_and_trend_info(self):
        field = classify({"label": "Revenue", "value": 100, "change": 5, "trend": "up"})
        assert isinstance(field, MetricField)
        assert field.value == 100
        assert field.trend == "up"

    def test_non_numeric_value_with_change_is_a_value_pair(self):
        field = classify({"label": "Growth", "value": "5%", "change": 5})
        assert isinstance(field, ValueField)

    def test_unknown_trend_dropped(self):
        field = classify({"label": "Revenue", "value": 1, "trend": "sideways"})
        assert isinstance(field, MetricField)
        assert field.trend is None

    def test_contact(self):
        field = classify({"name": "Jane", "email": "jane@example.test", "phone": "+1 555"})
        assert isinstance(field, ContactField)
        assert field.name == "Jane"
        assert field.id == "sec_jane"

    def test_name_and_role_is_a_contact(self):
        assert isinstance(classify({"name": "Jane", "role": "CTO"}), ContactField)

    def test_map_point_from_coordinates(self):
        field = classify({"label": "HQ", "coordinates": {"lat": 52.5, "lng": 13.4}})
        assert isinstance(field, MapPoint)
        assert (field.lat, field.lng) == (52.5, 13.4)

    def test_map_point_from_pair(self):
        field = classify({"label": "HQ", "coordinates": [1, 2]})
        assert (field.lat, field.lng) == (1.0, 2.0)

    def test_map_point_from_address_only(self):
        field = classify({"label": "Office", "address": "Berlin"})
        assert isinstance(field, MapPoint)
        assert field.lat is None
        assert field.address == "Berlin"

    def test_map_keys_win_over_contact(self):
        assert isinstance(classify({"name": "Jane", "email": "j@x.test", "address": "Berlin"}), MapPoint)

    def test_list_item(self):
        field = classify({"title": "Widget", "description": "Our best seller", "value": 3})
        assert isinstance(field, ListItem)
        assert field.title == "Widget"

    def test_unclassifiable_is_generic(self):
        field = classify({"foo": [1, 2], "bar": {"x": 1}})
        assert isinstance(field, GenericField)
        assert field.attributes == {"foo": [1, 2], "bar": {"x": 1}}
        assert field.id == "sec_field_0"

    def test_label_with_structured_value_is_generic(self):
        field = classify({"label": "Tags", "value": ["a", "b"]})
        assert isinstance(field, GenericField)
        assert field.label == "Tags"


class TestNonFiniteNumbers:
    def test_infinite_value_is_not_a_metric(self):
        field = classify({"label": "Revenue", "value": float("inf"), "trend": "up"})
        assert not isinstance(field, MetricField)

    def test_nan_value_pair_drops_to_generic(self):
        field = classify({"label": "Ratio", "value": float("nan")})
        assert isinstance(field, GenericField)

    def test_infinite_coordinates_are_absent(self):
        field = classify({"label": "HQ", "coordinates": [float("inf"), 2]})
        assert isinstance(field, MapPoint)
        assert (field.lat, field.lng) == (None, 2.0)

    def test_oversized_integer_coordinate_degrades(self):
        field = classify({"label": "HQ", "lat": 10**400, "lng": 2})
        assert isinstance(field, GenericField)


class TestFieldIds:
    def test_given_id_kept(self):
        assert classify({"id": "f-1", "label": "X", "value": 1}).id == "f-1"

    def test_duplicate_labels_suffixed(self):
        taken = set()
        first = classify({"label": "Phone", "value": "1"}, 0, taken)
        second = classify({"label": "Phone", "value": "2"}, 1, taken)
        assert (first.id, second.id) == ("sec_phone", "sec_phone_2")

    def test_index_fallback(self):
        assert classify({"value": 3}, index=4).id == "sec_field_4"
