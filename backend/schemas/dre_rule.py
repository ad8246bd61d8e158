# schemas/dre_rule.py
from __future__ import annotations
from typing import Any, Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field

AUTOMATION_RULE_TYPE = "Automation"

# ---------- Base ----------

class SalesforceRecord(BaseModel):
    """
    A record as exported from Salesforce. Known fields get Python names,
    everything else rides along as extra data so records dump back unchanged.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)

RecordT = TypeVar("RecordT", bound=SalesforceRecord)

class RelatedRecords(BaseModel, Generic[RecordT]):
    """Salesforce relationship query result: {"totalSize", "done", "records"}"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total_size: Optional[int] = Field(None, alias="totalSize")
    done: Optional[bool] = None
    records: List[RecordT] = Field(default_factory=list)

# ---------- Condition side ----------

class DreFilterGroup(SalesforceRecord):
    id: Optional[str] = Field(None, alias="Id")
    name: Optional[str] = Field(None, alias="Name")
    condition: Optional[str] = Field(None, alias="DRE__Condition__c")
    object_name: Optional[str] = Field(None, alias="DRE__Object_Name__c")
    object_path: Optional[str] = Field(None, alias="DRE__Object_Path__c")

class DreFilter(SalesforceRecord):
    # Only a literal JSON true marks a record active; the raw value is kept as exported.
    id: Optional[str] = Field(None, alias="Id")
    is_active: Any = Field(None, alias="DRE__IsActive__c")
    group_id: Optional[str] = Field(None, alias="DRE__DRE_Group__c")

# ---------- Action side ----------

class DreResultGroup(SalesforceRecord):
    id: Optional[str] = Field(None, alias="Id")
    name: Optional[str] = Field(None, alias="Name")
    description: Optional[str] = Field(None, alias="DRE__Description__c")

class DreResult(SalesforceRecord):
    id: Optional[str] = Field(None, alias="Id")
    is_active: Any = Field(None, alias="DRE__IsActive__c")
    group_id: Optional[str] = Field(None, alias="DRE__DRE_Group__c")

# ---------- Rule ----------

class DreRule(SalesforceRecord):
    name: Optional[str] = Field(None, alias="Name")
    description: Optional[str] = Field(None, alias="DRE__Description__c")
    rule_type: Optional[str] = Field(None, alias="DRE__Type__c")
    is_active: Optional[bool] = Field(None, alias="DRE__IsActive__c")
    object_name: Optional[str] = Field(None, alias="DRE__Object_Name__c")
    trigger_event: Optional[str] = Field(None, alias="DRE__Trigger_Event__c")

    filter_groups: Optional[RelatedRecords[DreFilterGroup]] = Field(None, alias="DRE__DRE_Filter_Groups__r")
    filters: Optional[RelatedRecords[DreFilter]] = Field(None, alias="DRE__DRE_Filters__r")
    result_groups: Optional[RelatedRecords[DreResultGroup]] = Field(None, alias="DRE__DRE_Result_Groups__r")
    results: Optional[RelatedRecords[DreResult]] = Field(None, alias="DRE__DRE_Results__r")

    @property
    def filter_group_records(self) -> List[DreFilterGroup]:
        return self.filter_groups.records if self.filter_groups else []

    @property
    def filter_records(self) -> List[DreFilter]:
        return self.filters.records if self.filters else []

    @property
    def result_group_records(self) -> List[DreResultGroup]:
        return self.result_groups.records if self.result_groups else []

    @property
    def result_records(self) -> List[DreResult]:
        return self.results.records if self.results else []

    def active_filters_for_group(self, group_id: Optional[str]) -> List[DreFilter]:
        """Active filters referencing the given filter group, in export order."""
        return [f for f in self.filter_records if f.group_id == group_id and f.is_active is True]

    def active_results_for_group(self, group_id: Optional[str]) -> List[DreResult]:
        """Active results referencing the given result group, in export order."""
        return [r for r in self.result_records if r.group_id == group_id and r.is_active is True]
