"""Application tests for issuing, activating and redeeming share coupons."""

import re
from datetime import date

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.loyalty.activation import ActivateShareCoupon, RedeemShareCoupon
from storefront.loyalty.codes import CodeGenerationExhausted
from storefront.loyalty.coupon import ShareCoupon, ShareCouponRepository, ShareCouponStatus, slot_id
from storefront.loyalty.issuance import IssueMonthlyShareCoupons

MARCH_2024 = date(2024, 3, 15)


def _issue(user_id, reference_date=MARCH_2024):
    return current_domain.process(
        IssueMonthlyShareCoupons(user_id=user_id, reference_date=reference_date),
        asynchronous=False,
    )


class TestIssuance:
    def test_three_coupons_for_the_month(self, register_customer):
        user_id = register_customer()
        ids = _issue(user_id)

        coupons = current_domain.repository_for(ShareCoupon).for_month(user_id, date(2024, 3, 1))
        assert [str(coupon.id) for coupon in coupons] == ids
        assert [coupon.slot for coupon in coupons] == [1, 2, 3]
        assert all(re.fullmatch(r"PT2403-[A-HJ-NP-Z2-9]{6}", coupon.code) for coupon in coupons)
        assert len({coupon.code for coupon in coupons}) == 3
        assert all(coupon.status == ShareCouponStatus.ISSUED.value for coupon in coupons)

    def test_issuing_again_changes_nothing(self, register_customer):
        user_id = register_customer()
        first = _issue(user_id)
        codes = [c.code for c in current_domain.repository_for(ShareCoupon).list_share_coupons(user_id)]

        second = _issue(user_id)
        assert second == first
        assert [c.code for c in current_domain.repository_for(ShareCoupon).list_share_coupons(user_id)] == codes

    def test_only_missing_slots_are_filled(self, register_customer):
        user_id = register_customer()
        existing = ShareCoupon.issue(user_id, date(2024, 3, 1), 2, "PT2403-AAAAAA")
        current_domain.repository_for(ShareCoupon).add(existing)

        ids = _issue(user_id)

        assert len(ids) == 3
        assert ids[1] == str(existing.id)
        coupons = current_domain.repository_for(ShareCoupon).for_month(user_id, date(2024, 3, 1))
        assert coupons[1].code == "PT2403-AAAAAA"

    def test_ids_are_derived_from_the_slot(self, register_customer):
        user_id = register_customer()
        ids = _issue(user_id)
        assert ids == [slot_id(user_id, date(2024, 3, 1), slot) for slot in (1, 2, 3)]

    def test_months_are_independent(self, register_customer):
        user_id = register_customer()
        _issue(user_id)
        _issue(user_id, reference_date=date(2024, 4, 2))

        coupons = current_domain.repository_for(ShareCoupon).list_share_coupons(user_id)
        assert len(coupons) == 6
        assert [(coupon.year, coupon.month) for coupon in coupons[:3]] == [(2024, 4)] * 3

    def test_unknown_customer(self):
        with pytest.raises(ObjectNotFoundError):
            _issue("missing")

    def test_exhausted_code_space(self, register_customer, monkeypatch):
        user_id = register_customer()
        monkeypatch.setattr(ShareCouponRepository, "code_taken", lambda self, code: True)

        with pytest.raises(CodeGenerationExhausted) as exc:
            _issue(user_id)

        assert exc.value.unrecoverable is True
        assert exc.value.prefix == "PT2403"
        assert current_domain.repository_for(ShareCoupon).list_share_coupons(user_id) == []


class TestActivationAndRedemption:
    @pytest.fixture()
    def coupon(self, register_customer):
        user_id = register_customer()
        _issue(user_id)
        return current_domain.repository_for(ShareCoupon).for_month(user_id, date(2024, 3, 1))[0]

    def test_activate_then_redeem(self, coupon):
        repo = current_domain.repository_for(ShareCoupon)

        current_domain.process(ActivateShareCoupon(user_id=coupon.user_id, code=coupon.code), asynchronous=False)
        activated = repo.get(coupon.id)
        assert activated.status == ShareCouponStatus.ACTIVATED.value
        assert activated.activated_at is not None

        current_domain.process(RedeemShareCoupon(user_id=coupon.user_id, code=coupon.code), asynchronous=False)
        redeemed = repo.get(coupon.id)
        assert redeemed.status == ShareCouponStatus.REDEEMED.value
        assert redeemed.redeemed_at is not None

    def test_code_is_matched_case_insensitively(self, coupon):
        current_domain.process(
            ActivateShareCoupon(user_id=coupon.user_id, code=f" {coupon.code.lower()} "),
            asynchronous=False,
        )
        assert current_domain.repository_for(ShareCoupon).get(coupon.id).status == ShareCouponStatus.ACTIVATED.value

    def test_activating_twice_keeps_first_timestamp(self, coupon):
        repo = current_domain.repository_for(ShareCoupon)
        command = ActivateShareCoupon(user_id=coupon.user_id, code=coupon.code)
        current_domain.process(command, asynchronous=False)
        activated_at = repo.get(coupon.id).activated_at

        current_domain.process(command, asynchronous=False)
        assert repo.get(coupon.id).activated_at == activated_at

    def test_redeem_requires_activation(self, coupon):
        with pytest.raises(ValidationError):
            current_domain.process(RedeemShareCoupon(user_id=coupon.user_id, code=coupon.code), asynchronous=False)

    def test_coupon_of_another_customer_is_not_found(self, coupon, register_customer):
        other = register_customer(email="bruno@example.com")
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(ActivateShareCoupon(user_id=other, code=coupon.code), asynchronous=False)


class TestListing:
    def test_list_all_by_status(self, register_customer):
        user_id = register_customer()
        _issue(user_id)
        code = current_domain.repository_for(ShareCoupon).for_month(user_id, date(2024, 3, 1))[0].code
        current_domain.process(ActivateShareCoupon(user_id=user_id, code=code), asynchronous=False)

        repo = current_domain.repository_for(ShareCoupon)
        assert len(repo.list_all()) == 3
        assert [coupon.code for coupon in repo.list_all(status="activated")] == [code]
        assert len(repo.list_all(status=ShareCouponStatus.ISSUED)) == 2

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            current_domain.repository_for(ShareCoupon).list_all(status="LOST")
