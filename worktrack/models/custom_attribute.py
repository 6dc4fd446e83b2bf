# worktrack/models/custom_attribute.py
from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship, object_session
from typing import Dict, List
from worktrack.database import Base


class CustomAttribute(Base):
    """Company-defined extra field for one entity type (e.g. "WorkLog")"""

    __tablename__ = "custom_attributes"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    attributable_type = Column(String(50), nullable=False)
    display_name = Column(String, nullable=False)
    mandatory = Column(Boolean, default=False, nullable=False)
    max_length = Column(Integer, nullable=True)
    choices = Column(Text, nullable=True)  # comma separated, empty means free text
    position = Column(Integer, default=0, nullable=False)

    @property
    def choice_list(self) -> List[str]:
        if not self.choices:
            return []
        return [choice.strip() for choice in self.choices.split(",") if choice.strip()]

    def errors_for(self, value) -> List[str]:
        value = (value or "").strip()
        if not value:
            return [f"{self.display_name} is required"] if self.mandatory else []

        errors = []
        if self.max_length and len(value) > self.max_length:
            errors.append(f"{self.display_name} is too long (maximum is {self.max_length} characters)")
        if self.choice_list and value not in self.choice_list:
            errors.append(f"{self.display_name} must be one of: {', '.join(self.choice_list)}")
        return errors


class CustomAttributeValue(Base):
    __tablename__ = "custom_attribute_values"

    id = Column(Integer, primary_key=True, index=True)
    custom_attribute_id = Column(Integer, ForeignKey("custom_attributes.id"), nullable=False)
    attributable_type = Column(String(50), nullable=False)
    attributable_id = Column(Integer, nullable=True, index=True)
    value = Column(Text, nullable=True)

    custom_attribute = relationship("CustomAttribute")


class CustomAttributeMethods:
    """Mixin for models owning `custom_attribute_values` and a `company`"""

    def available_custom_attributes(self) -> List[CustomAttribute]:
        session = object_session(self)
        # pending objects may only carry the company relationship
        company_id = self.company_id if self.company_id is not None else getattr(self.company, "id", None)
        if session is None or company_id is None:
            return []
        with session.no_autoflush:
            return session.query(CustomAttribute).filter(
                CustomAttribute.company_id == company_id,
                CustomAttribute.attributable_type == type(self).__name__
            ).order_by(CustomAttribute.position, CustomAttribute.id).all()

    def set_custom_attribute_value(self, custom_attribute, value):
        for existing in self.custom_attribute_values:
            if existing.custom_attribute_id == custom_attribute.id:
                existing.value = value
                return existing
        attribute_value = CustomAttributeValue(
            custom_attribute=custom_attribute,
            custom_attribute_id=custom_attribute.id,
            attributable_type=type(self).__name__,
            value=value
        )
        self.custom_attribute_values.append(attribute_value)
        return attribute_value

    def assign_custom_attributes(self, values: Dict[int, str]):
        """Set values by attribute id; ids the company does not define are ignored"""
        for attribute in self.available_custom_attributes():
            if attribute.id in values:
                self.set_custom_attribute_value(attribute, values[attribute.id])

    def custom_attribute_errors(self) -> List[str]:
        values = {
            attribute_value.custom_attribute_id: attribute_value.value
            for attribute_value in self.custom_attribute_values
        }
        errors = []
        for attribute in self.available_custom_attributes():
            errors.extend(attribute.errors_for(values.get(attribute.id)))
        return errors
