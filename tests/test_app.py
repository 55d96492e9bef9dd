"""Tests for the HTTP endpoints."""

import pytest

import app as app_module
from costing.catalog import CatalogError


@pytest.fixture
def client():
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def payload():
    return {
        'items': [
            {'name': 'Ankara', 'cost': 10000, 'quantity': 1, 'category': 'Fabric'},
            {'name': 'Lace', 'cost': 5000, 'quantity': 2, 'category': 'Fabric'},
        ],
        'charges': {'workmanship': 2000, 'profitMargin': 3000},
        'tax': {'rate': 7.5, 'enabled': True},
    }


class TestComputeBreakdown:
    """Tests for POST /compute-breakdown."""

    def test_breakdown(self, client, payload):
        """Test a breakdown is computed and returned."""
        response = client.post('/compute-breakdown', json=payload)
        data = response.get_json()

        assert response.status_code == 200
        assert data['is_success'] is True
        assert data['data']['grand_total']['display'] == '26875.00'
        assert data['data']['tax_amount']['display'] == '1875.00'
        assert data['data']['category_totals']['Fabric']['display'] == '20000.00'
        assert data['save_payload']['profitMargin'] == '3000'

    def test_breakdown_in_naira(self, client, payload):
        """Test the display currency is honoured."""
        payload['currency'] = 'NGN'

        data = client.post('/compute-breakdown', json=payload).get_json()

        assert data['data']['currency'] == 'NGN'
        assert data['data']['grand_total']['formatted'] == '₦44,343,750.00'

    def test_flow_preset(self, client, payload):
        """Test a flow without VAT omits the tax fields."""
        payload['flow'] = 'invoice'

        data = client.post('/compute-breakdown', json=payload).get_json()

        assert 'tax_amount' not in data['data']
        assert data['data']['grand_total']['raw'] == '25000'

    def test_unknown_currency(self, client, payload):
        """Test an unsupported currency is a 400."""
        payload['currency'] = 'EUR'

        response = client.post('/compute-breakdown', json=payload)

        assert response.status_code == 400
        assert response.get_json()['is_success'] is False
        assert 'EUR' in response.get_json()['error']

    def test_unknown_flow(self, client, payload):
        """Test an unknown flow is a 400."""
        payload['flow'] = 'checkout'

        response = client.post('/compute-breakdown', json=payload)

        assert response.status_code == 400
        assert response.get_json()['error'] == "Unknown flow: 'checkout'"

    def test_missing_body(self, client):
        """Test a request without JSON is a 400."""
        response = client.post('/compute-breakdown', data='nope')

        assert response.status_code == 400

    def test_order_edit_flow(self, client):
        """Test order edit adds shipping after VAT."""
        response = client.post('/compute-breakdown', json={
            'items': [{'name': 'Suit', 'cost': 1000}],
            'charges': {'shippingCost': 500},
            'tax': {'rate': 10, 'enabled': True},
            'flow': 'order_edit',
        })

        data = response.get_json()['data']
        assert data['tax_amount']['raw'] == '100'
        assert data['grand_total']['raw'] == '1600'
        assert data['untaxed_charges'] == ['shipping_or_handling']

    def test_internal_lookup_error_is_500(self, client, payload, monkeypatch):
        """Test a KeyError from a bug is not reported as bad input."""
        def broken_payload(*args, **kwargs):
            raise KeyError('overallCost')

        monkeypatch.setattr(app_module.calculator, 'to_save_payload', broken_payload)

        response = client.post('/compute-breakdown', json=payload)

        assert response.status_code == 500
        assert response.get_json()['is_success'] is False


class TestOtherEndpoints:
    """Tests for the remaining endpoints."""

    def test_summary(self, client, payload):
        """Test the text summary endpoint."""
        data = client.post('/summary', json=payload).get_json()

        assert data['is_success'] is True
        assert "Total Price: $26,875.00" in data['summary']

    def test_currencies(self, client):
        """Test the currency table is listed."""
        data = client.get('/currencies').get_json()

        assert data['base'] == 'USD'
        assert {c['code'] for c in data['currencies']} == {'USD', 'NGN'}

    def test_categories(self, client):
        """Test categories and flows are listed."""
        data = client.get('/categories').get_json()

        assert data['categories'][0]['name'] == "Fabric & Main Materials"
        assert "Lining" in data['categories'][0]['quick_add']
        assert 'order_wizard' in data['flows']

    def test_catalog_line_items(self, client, monkeypatch):
        """Test catalog products are returned as line items."""
        def fake_search(self, search="", **kwargs):
            from costing.models import LineItem
            return [LineItem("Suit", 320, id="p-1")]

        monkeypatch.setattr(app_module.CatalogClient, 'search_line_items', fake_search)

        data = client.get('/catalog/line-items?search=suit').get_json()

        assert data['items'] == [{'id': 'p-1', 'label': 'Suit', 'unit_cost': '320',
                                  'quantity': 1, 'category': None}]

    def test_catalog_unavailable(self, client, monkeypatch):
        """Test catalog failures map to a 502."""
        def fake_search(self, search="", **kwargs):
            raise CatalogError("Failed to reach catalog")

        monkeypatch.setattr(app_module.CatalogClient, 'search_line_items', fake_search)

        response = client.get('/catalog/line-items')

        assert response.status_code == 502

    def test_health(self, client):
        """Test the health check."""
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy"}
