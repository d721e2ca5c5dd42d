# kuflow_samples/temporal/activities/datasource.py
# 数据源（DataSource）Activities
#
# KuFlow 表单中的"数据源"下拉框会调用这两个 Activity：
# - DataSource_runQuery：按输入文本过滤并分页返回候选项
# - DataSource_validateValue：提交表单时校验已选中的值是否仍然有效
#
# 数据来自内存中的 150 条模拟商品，仅用于演示分页和过滤。

from temporalio import activity
from temporalio.exceptions import ApplicationError

from kuflow_samples.temporal.types import (
    DataSourceQueryRequest,
    DataSourceQueryResponse,
    DataSourceValidateValueRequest,
    DataSourceValidateValueResponse,
    DataSourceValidateValueResult,
)


# (id, label, sku, price, stock)
_PRODUCT_ROWS = [
    ("prod-001", "Widget A", "WDG-A-001", 99.99, 150),
    ("prod-002", "Widget B", "WDG-B-002", 149.99, 75),
    ("prod-003", "Widget C", "WDG-C-003", 199.99, 120),
    ("prod-004", "Widget D", "WDG-D-004", 89.99, 200),
    ("prod-005", "Widget E", "WDG-E-005", 129.99, 95),
    ("prod-006", "Widget F", "WDG-F-006", 159.99, 110),
    ("prod-007", "Widget G", "WDG-G-007", 179.99, 85),
    ("prod-008", "Widget H", "WDG-H-008", 139.99, 140),
    ("prod-009", "Widget I", "WDG-I-009", 109.99, 165),
    ("prod-010", "Widget J", "WDG-J-010", 119.99, 180),
    ("prod-011", "Widget K", "WDG-K-011", 94.99, 155),
    ("prod-012", "Widget L", "WDG-L-012", 104.99, 125),
    ("prod-013", "Widget M", "WDG-M-013", 114.99, 145),
    ("prod-014", "Widget N", "WDG-N-014", 124.99, 135),
    ("prod-015", "Widget O", "WDG-O-015", 134.99, 115),
    ("prod-016", "Widget P", "WDG-P-016", 144.99, 105),
    ("prod-017", "Widget Q", "WDG-Q-017", 154.99, 95),
    ("prod-018", "Widget R", "WDG-R-018", 164.99, 85),
    ("prod-019", "Widget S", "WDG-S-019", 174.99, 175),
    ("prod-020", "Widget T", "WDG-T-020", 184.99, 165),
    ("prod-021", "Widget U", "WDG-U-021", 194.99, 155),
    ("prod-022", "Widget V", "WDG-V-022", 79.99, 145),
    ("prod-023", "Widget W", "WDG-W-023", 69.99, 135),
    ("prod-024", "Widget X", "WDG-X-024", 59.99, 125),
    ("prod-025", "Widget Y", "WDG-Y-025", 49.99, 115),
    ("prod-026", "Widget Z", "WDG-Z-026", 209.99, 105),
    ("prod-027", "Widget AA", "WDG-AA-027", 219.99, 95),
    ("prod-028", "Widget AB", "WDG-AB-028", 229.99, 185),
    ("prod-029", "Widget AC", "WDG-AC-029", 239.99, 175),
    ("prod-030", "Widget AD", "WDG-AD-030", 249.99, 165),
    ("prod-031", "Widget AE", "WDG-AE-031", 259.99, 155),
    ("prod-032", "Widget AF", "WDG-AF-032", 269.99, 145),
    ("prod-033", "Widget AG", "WDG-AG-033", 279.99, 135),
    ("prod-034", "Widget AH", "WDG-AH-034", 289.99, 125),
    ("prod-035", "Widget AI", "WDG-AI-035", 299.99, 115),
    ("prod-036", "Widget AJ", "WDG-AJ-036", 84.99, 190),
    ("prod-037", "Widget AK", "WDG-AK-037", 74.99, 170),
    ("prod-038", "Widget AL", "WDG-AL-038", 64.99, 160),
    ("prod-039", "Widget AM", "WDG-AM-039", 54.99, 150),
    ("prod-040", "Widget AN", "WDG-AN-040", 44.99, 140),
    ("prod-041", "Widget AO", "WDG-AO-041", 189.99, 130),
    ("prod-042", "Widget AP", "WDG-AP-042", 169.99, 120),
    ("prod-043", "Widget AQ", "WDG-AQ-043", 159.99, 110),
    ("prod-044", "Widget AR", "WDG-AR-044", 149.99, 100),
    ("prod-045", "Widget AS", "WDG-AS-045", 139.99, 90),
    ("prod-046", "Widget AT", "WDG-AT-046", 129.99, 195),
    ("prod-047", "Widget AU", "WDG-AU-047", 119.99, 185),
    ("prod-048", "Widget AV", "WDG-AV-048", 109.99, 175),
    ("prod-049", "Widget AW", "WDG-AW-049", 99.99, 165),
    ("prod-050", "Widget AX", "WDG-AX-050", 89.99, 155),
    ("prod-051", "Gadget A", "GDG-A-051", 299.99, 80),
    ("prod-052", "Gadget B", "GDG-B-052", 349.99, 65),
    ("prod-053", "Gadget C", "GDG-C-053", 399.99, 90),
    ("prod-054", "Gadget D", "GDG-D-054", 449.99, 55),
    ("prod-055", "Gadget E", "GDG-E-055", 499.99, 70),
    ("prod-056", "Gadget F", "GDG-F-056", 549.99, 45),
    ("prod-057", "Gadget G", "GDG-G-057", 599.99, 60),
    ("prod-058", "Gadget H", "GDG-H-058", 649.99, 35),
    ("prod-059", "Gadget I", "GDG-I-059", 699.99, 50),
    ("prod-060", "Gadget J", "GDG-J-060", 749.99, 25),
    ("prod-061", "Gadget K", "GDG-K-061", 799.99, 40),
    ("prod-062", "Gadget L", "GDG-L-062", 849.99, 30),
    ("prod-063", "Gadget M", "GDG-M-063", 899.99, 20),
    ("prod-064", "Gadget N", "GDG-N-064", 949.99, 15),
    ("prod-065", "Gadget O", "GDG-O-065", 999.99, 10),
    ("prod-066", "Gadget P", "GDG-P-066", 319.99, 85),
    ("prod-067", "Gadget Q", "GDG-Q-067", 369.99, 75),
    ("prod-068", "Gadget R", "GDG-R-068", 419.99, 95),
    ("prod-069", "Gadget S", "GDG-S-069", 469.99, 100),
    ("prod-070", "Gadget T", "GDG-T-070", 519.99, 65),
    ("prod-071", "Tool A", "TL-A-071", 39.99, 250),
    ("prod-072", "Tool B", "TL-B-072", 49.99, 230),
    ("prod-073", "Tool C", "TL-C-073", 59.99, 210),
    ("prod-074", "Tool D", "TL-D-074", 69.99, 190),
    ("prod-075", "Tool E", "TL-E-075", 79.99, 270),
    ("prod-076", "Tool F", "TL-F-076", 89.99, 240),
    ("prod-077", "Tool G", "TL-G-077", 99.99, 220),
    ("prod-078", "Tool H", "TL-H-078", 109.99, 200),
    ("prod-079", "Tool I", "TL-I-079", 119.99, 180),
    ("prod-080", "Tool J", "TL-J-080", 129.99, 260),
    ("prod-081", "Tool K", "TL-K-081", 34.99, 290),
    ("prod-082", "Tool L", "TL-L-082", 44.99, 280),
    ("prod-083", "Tool M", "TL-M-083", 54.99, 265),
    ("prod-084", "Tool N", "TL-N-084", 64.99, 255),
    ("prod-085", "Tool O", "TL-O-085", 74.99, 245),
    ("prod-086", "Tool P", "TL-P-086", 84.99, 235),
    ("prod-087", "Tool Q", "TL-Q-087", 94.99, 225),
    ("prod-088", "Tool R", "TL-R-088", 104.99, 215),
    ("prod-089", "Tool S", "TL-S-089", 114.99, 205),
    ("prod-090", "Tool T", "TL-T-090", 124.99, 195),
    ("prod-091", "Device A", "DVC-A-091", 1299.99, 30),
    ("prod-092", "Device B", "DVC-B-092", 1399.99, 25),
    ("prod-093", "Device C", "DVC-C-093", 1499.99, 20),
    ("prod-094", "Device D", "DVC-D-094", 1599.99, 15),
    ("prod-095", "Device E", "DVC-E-095", 1699.99, 35),
    ("prod-096", "Device F", "DVC-F-096", 1799.99, 28),
    ("prod-097", "Device G", "DVC-G-097", 1899.99, 22),
    ("prod-098", "Device H", "DVC-H-098", 1999.99, 18),
    ("prod-099", "Device I", "DVC-I-099", 2099.99, 12),
    ("prod-100", "Device J", "DVC-J-100", 2199.99, 8),
    ("prod-101", "Component A", "CMP-A-101", 24.99, 500),
    ("prod-102", "Component B", "CMP-B-102", 29.99, 480),
    ("prod-103", "Component C", "CMP-C-103", 34.99, 460),
    ("prod-104", "Component D", "CMP-D-104", 39.99, 440),
    ("prod-105", "Component E", "CMP-E-105", 44.99, 520),
    ("prod-106", "Component F", "CMP-F-106", 49.99, 490),
    ("prod-107", "Component G", "CMP-G-107", 54.99, 470),
    ("prod-108", "Component H", "CMP-H-108", 59.99, 450),
    ("prod-109", "Component I", "CMP-I-109", 64.99, 430),
    ("prod-110", "Component J", "CMP-J-110", 69.99, 510),
    ("prod-111", "Component K", "CMP-K-111", 19.99, 550),
    ("prod-112", "Component L", "CMP-L-112", 22.99, 530),
    ("prod-113", "Component M", "CMP-M-113", 27.99, 505),
    ("prod-114", "Component N", "CMP-N-114", 32.99, 485),
    ("prod-115", "Component O", "CMP-O-115", 37.99, 465),
    ("prod-116", "Component P", "CMP-P-116", 42.99, 545),
    ("prod-117", "Component Q", "CMP-Q-117", 47.99, 525),
    ("prod-118", "Component R", "CMP-R-118", 52.99, 515),
    ("prod-119", "Component S", "CMP-S-119", 57.99, 495),
    ("prod-120", "Component T", "CMP-T-120", 62.99, 475),
    ("prod-121", "Accessory A", "ACC-A-121", 14.99, 600),
    ("prod-122", "Accessory B", "ACC-B-122", 16.99, 580),
    ("prod-123", "Accessory C", "ACC-C-123", 18.99, 560),
    ("prod-124", "Accessory D", "ACC-D-124", 20.99, 540),
    ("prod-125", "Accessory E", "ACC-E-125", 22.99, 620),
    ("prod-126", "Accessory F", "ACC-F-126", 24.99, 590),
    ("prod-127", "Accessory G", "ACC-G-127", 26.99, 570),
    ("prod-128", "Accessory H", "ACC-H-128", 28.99, 550),
    ("prod-129", "Accessory I", "ACC-I-129", 30.99, 530),
    ("prod-130", "Accessory J", "ACC-J-130", 32.99, 610),
    ("prod-131", "Accessory K", "ACC-K-131", 12.99, 650),
    ("prod-132", "Accessory L", "ACC-L-132", 13.99, 630),
    ("prod-133", "Accessory M", "ACC-M-133", 15.99, 605),
    ("prod-134", "Accessory N", "ACC-N-134", 17.99, 585),
    ("prod-135", "Accessory O", "ACC-O-135", 19.99, 565),
    ("prod-136", "Accessory P", "ACC-P-136", 21.99, 645),
    ("prod-137", "Accessory Q", "ACC-Q-137", 23.99, 625),
    ("prod-138", "Accessory R", "ACC-R-138", 25.99, 615),
    ("prod-139", "Accessory S", "ACC-S-139", 27.99, 595),
    ("prod-140", "Accessory T", "ACC-T-140", 29.99, 575),
    ("prod-141", "Premium A", "PRM-A-141", 2499.99, 5),
    ("prod-142", "Premium B", "PRM-B-142", 2599.99, 4),
    ("prod-143", "Premium C", "PRM-C-143", 2699.99, 3),
    ("prod-144", "Premium D", "PRM-D-144", 2799.99, 6),
    ("prod-145", "Premium E", "PRM-E-145", 2899.99, 7),
    ("prod-146", "Premium F", "PRM-F-146", 2999.99, 2),
    ("prod-147", "Premium G", "PRM-G-147", 3099.99, 8),
    ("prod-148", "Premium H", "PRM-H-148", 3199.99, 9),
    ("prod-149", "Premium I", "PRM-I-149", 3299.99, 1),
    ("prod-150", "Premium J", "PRM-J-150", 3399.99, 10),
]

MOCK_PRODUCTS: list[dict] = [
    {"id": id_, "label": label, "name": label, "sku": sku, "price": price, "stock": stock}
    for id_, label, sku, price, stock in _PRODUCT_ROWS
]

PRODUCT_IDS = frozenset(product["id"] for product in MOCK_PRODUCTS)


def _validation_error(message: str) -> ApplicationError:
    activity.logger.error(message)
    return ApplicationError(message, type="validation", non_retryable=True)


def _validate_page_number(page_number) -> int:
    if page_number is None:
        raise _validation_error("Pagination is required: pageNumber must be specified")
    if page_number < 0:
        raise _validation_error(f"Invalid pageNumber: must be >= 0, got {page_number}")
    return page_number


def _validate_page_size(page_size) -> int:
    if page_size is None:
        raise _validation_error("Pagination is required: pageSize must be specified")
    if page_size <= 0:
        raise _validation_error(f"Invalid pageSize: must be > 0, got {page_size}")
    return page_size


def filter_products(products: list[dict], query) -> list[dict]:
    """按 label 做不区分大小写的子串匹配，query 为空时返回全部"""
    if query is None or not query.strip():
        return products

    normalized = query.strip().lower()
    return [
        product for product in products
        if product.get("label") is not None and normalized in str(product["label"]).lower()
    ]


def _validate_single_value(value) -> DataSourceValidateValueResult:
    if not isinstance(value, dict):
        type_name = "null" if value is None else type(value).__name__
        return DataSourceValidateValueResult(valid=False, message=f"Invalid value type. Got {type_name}")

    product_id = value.get("id")
    if product_id is None or not str(product_id).strip():
        return DataSourceValidateValueResult(
            valid=False, message="Value map does not contain a valid 'id' key"
        )

    if str(product_id) not in PRODUCT_IDS:
        return DataSourceValidateValueResult(
            valid=False, message=f"Product ID '{product_id}' not found in data source"
        )

    return DataSourceValidateValueResult(valid=True)


class DataSourceActivities:
    """数据源 Activities"""

    def all(self) -> list:
        return [self.run_query, self.validate_value]

    @activity.defn(name="DataSource_runQuery")
    async def run_query(self, request: DataSourceQueryRequest) -> DataSourceQueryResponse:
        """
        分页查询

        Raises:
            ApplicationError: 分页参数缺失或非法（type=validation，不可重试）
        """
        activity.logger.info(f"Started data source process {request.code}")

        page_number = _validate_page_number(request.page_number)
        page_size = _validate_page_size(request.page_size)

        filtered = filter_products(MOCK_PRODUCTS, request.query)
        total_elements = len(filtered)
        total_pages = -(-total_elements // page_size)

        start = page_number * page_size
        end = min(start + page_size, total_elements)

        if start >= total_elements:
            activity.logger.info(f"Page {page_number} out of range, returning empty list")
            items = []
        else:
            items = filtered[start:end]

        activity.logger.info(
            f"Finished data source process {request.code}: "
            f"page={page_number}, size={page_size}, items={len(items)}, total={total_elements}"
        )

        return DataSourceQueryResponse(
            page_number=page_number,
            page_size=page_size,
            total_elements=total_elements,
            total_pages=total_pages,
            items=items,
        )

    @activity.defn(name="DataSource_validateValue")
    async def validate_value(
        self,
        request: DataSourceValidateValueRequest,
    ) -> DataSourceValidateValueResponse:
        """校验已选中的值，没有值时直接通过"""
        activity.logger.info(f"Started data source validation {request.code}")

        response = DataSourceValidateValueResponse()
        if not request.values:
            return response

        response.validations = [_validate_single_value(value) for value in request.values]

        valid_count = sum(1 for result in response.validations if result.valid)
        activity.logger.info(
            f"Finished data source validation {request.code} - "
            f"{valid_count} out of {len(response.validations)} values valid"
        )
        return response
