"""
Test Customer model.
"""

from cart_netsuite.models.customer import COMPANY, INDIVIDUAL, Customer


class TestCustomer:
    """Test customer derivation, matching and NetSuite mapping."""

    def test_from_order_data(self, sample_order):
        customer = Customer.from_order_data(sample_order)

        assert customer.email == 'jane.doe@example.com'
        assert customer.full_name == 'Jane Doe'
        assert customer.customer_type == INDIVIDUAL
        assert customer.has_required_fields()

    def test_company_customer(self, sample_order):
        sample_order['BillingCompany'] = 'Acme Corp'

        customer = Customer.from_order_data(sample_order)
        record = customer.to_netsuite_format(subsidiary_id=3)

        assert customer.customer_type == COMPANY
        assert record['isPerson'] is False
        assert record['companyName'] == 'Acme Corp'
        assert record['subsidiary'] == {'id': 3}

    def test_to_netsuite_format_individual(self, sample_order):
        record = Customer.from_order_data(sample_order).to_netsuite_format()

        assert record['firstName'] == 'Jane'
        assert record['lastName'] == 'Doe'
        assert record['email'] == 'jane.doe@example.com'
        assert record['isPerson'] is True
        assert 'companyName' not in record
        assert record['phone'] == '555-123-4567'
        assert record['defaultAddress']['city'] == 'Springfield'

    def test_missing_fields(self):
        customer = Customer({'email': 'jane@example.com', 'firstname': 'Jane'})

        assert customer.missing_fields() == ['lastname']
        assert not customer.has_required_fields()

    def test_emails_match_case_insensitively(self):
        first = Customer({'email': 'Jane.Doe@Example.com'})
        second = Customer({'email': 'jane.doe@example.com '})

        assert first.matches(second)

    def test_different_emails_do_not_match(self):
        assert not Customer({'email': 'a@example.com'}).matches(Customer({'email': 'b@example.com'}))

    def test_match_on_name_and_phone_without_email(self):
        first = Customer({'firstname': 'Jane', 'lastname': 'Doe', 'phone': '(555) 123-4567'})
        second = Customer({'firstname': 'jane', 'lastname': 'doe', 'phone': '555.123.4567'})

        assert first.matches(second)

    def test_sanitize(self):
        customer = Customer({
            'firstname': '  <i>Jane</i> ',
            'lastname': 'Doe',
            'email': ' JANE@EXAMPLE.COM ',
            'phone': 'tel: 555-123-4567',
        })

        customer.sanitize()

        assert customer.first_name == 'Jane'
        assert customer.email == 'jane@example.com'
        assert customer.phone == '555-123-4567'
        assert customer.validate() == []
